"""
Constants for knowledge_coverage_graph package.

Centralizes magic numbers and configuration defaults.
"""

# Embedding defaults
EMBEDDING_MODEL = "embedding-3"
EMBEDDING_DIMENSION = 768
EMBEDDING_BASE_URL = "https://open.bigmodel.cn/api/paas/v4/"
EMBEDDING_TIMEOUT_SECONDS = 5.0
EMBEDDING_MAX_RETRIES = 1
EMBEDDING_MAX_CHARS = 8000  # Truncate long inputs before sending

# Similarity defaults
DEFAULT_SIMILARITY_THRESHOLD = 0.8
DEFAULT_TOP_K = 5

# Company graph
CROSS_REFERENCE_DAMPING = 0.5  # Cross-product relations are weaker than containment
CATEGORY_EDGE_WEIGHT = 0.8
PRODUCT_EDGE_WEIGHT = 1.0
KNOWLEDGE_DESCRIPTION_CHARS = 200
FALLBACK_CATEGORY = "other"
LOW_COVERAGE_THRESHOLD = 50

# User graph
MIN_SHARED_KEYWORDS = 2
MAX_RELATED_QUESTIONS = 5

# Graph analysis
LABEL_PROPAGATION_ROUNDS = 5
BRIDGE_BETWEENNESS_MIN = 0.1
BRIDGE_DEGREE_MAX = 0.1
COMMUNITY_DENSITY_MIN = 0.3
LARGE_COMMUNITY_SIZE = 3

# Time series
TIME_SERIES_RETENTION = 100
TREND_WINDOW = 5
TREND_CHANGE_PCT = 5.0
SIGNIFICANT_CHANGE_PCT = 10.0

# Persistence keys
COMPANY_GRAPH_KEY = "company_graph"
USER_GRAPH_KEY = "user_graph"
TIME_SERIES_KEY = "time_series"
