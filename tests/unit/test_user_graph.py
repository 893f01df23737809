"""
Tests for the user question graph builder.
"""

import pytest

from knowledge_coverage_graph.graph.models import QuestionEvent
from knowledge_coverage_graph.graph.user import (
    UserGraph,
    UserGraphBuilder,
    normalize_question,
    question_id,
)


@pytest.fixture
def builder(clock):
    return UserGraphBuilder(clock=clock)


class TestQuestionIdentity:
    def test_normalized_text_shares_id(self):
        assert question_id("How do I  install?") == question_id("how do i install?")

    def test_different_text_different_id(self):
        assert question_id("install") != question_id("uninstall")

    def test_normalize(self):
        assert normalize_question("  Hello   World ") == "hello world"

    def test_id_prefix(self):
        assert question_id("x").startswith("q_")


class TestRecordQuestion:
    def test_new_question(self, builder, clock):
        qid = builder.record_question("How to install?", ["install"], "usage", "neutral")
        question = builder.snapshot().question(qid)

        assert question.frequency == 1
        assert question.keywords == ("install",)
        assert question.category == "usage"
        assert question.last_asked == clock.now

    def test_repeat_increments_frequency(self, builder, clock):
        qid = builder.record_question("How to install?", ["install"])
        clock.advance(hours=1)
        assert builder.record_question("How to install?", ["install"]) == qid

        question = builder.snapshot().question(qid)
        assert question.frequency == 2
        assert question.last_asked == clock.now
        assert len(builder) == 1

    def test_counters_are_running_totals(self, builder):
        builder.record_question("a", ["install", "camera"], "usage")
        builder.record_question("a", ["install", "camera"], "usage")
        builder.record_question("b", ["install"], "setup")

        graph = builder.snapshot()
        assert graph.keyword_counts == {"install": 3, "camera": 2}
        assert graph.category_counts == {"usage": 2, "setup": 1}

    def test_unknown_sentiment_becomes_neutral(self, builder):
        qid = builder.record_question("a", sentiment="angry")
        assert builder.snapshot().question(qid).sentiment == "neutral"

    def test_blank_keywords_dropped(self, builder):
        qid = builder.record_question("a", ["install", " ", "install", ""])
        assert builder.snapshot().question(qid).keywords == ("install",)

    def test_record_events(self, builder, sample_events):
        ids = builder.record_events(sample_events)
        assert len(ids) == 5
        assert ids[0] == ids[1]
        assert len(builder) == 4

    def test_increment_frequency(self, builder):
        qid = builder.record_question("a", ["k"])
        assert builder.increment_frequency(qid) is True
        assert builder.snapshot().question(qid).frequency == 2
        assert builder.increment_frequency("q_missing") is False

    def test_increment_frequency_counts_keywords_only(self, builder, clock):
        qid = builder.record_question("Reset password", ["password", "login"], "account")
        clock.advance(hours=1)
        builder.increment_frequency(qid)

        graph = builder.snapshot()
        assert graph.keyword_counts == {"password": 2, "login": 2}
        assert graph.category_counts == {"account": 1}
        assert graph.question(qid).last_asked == clock.now


class TestRelatedQuestions:
    def test_two_shared_keywords_required(self, builder):
        a = builder.record_question("a", ["install", "camera"])
        b = builder.record_question("b", ["install", "camera", "outdoor"])
        c = builder.record_question("c", ["install", "doorbell"])

        graph = builder.snapshot()
        assert graph.question(b).related_ids == (a,)
        assert c not in graph.question(b).related_ids

    def test_only_affected_node_recomputed(self, builder):
        a = builder.record_question("a", ["install", "camera"])
        b = builder.record_question("b", ["install", "camera"])

        graph = builder.snapshot()
        assert graph.question(a).related_ids == ()
        assert graph.question(b).related_ids == (a,)

    def test_capped_at_five_best(self, builder):
        others = [builder.record_question(f"q{i}", ["k1", "k2"]) for i in range(5)]
        strong = builder.record_question("strong", ["k1", "k2", "k3"])
        target = builder.record_question("target", ["k1", "k2", "k3"])

        related = builder.snapshot().question(target).related_ids
        assert len(related) == 5
        assert related[0] == strong
        # remaining ties broken by creation order
        assert list(related[1:]) == others[:4]

    def test_related_edges_deduplicated(self, builder):
        a = builder.record_question("a", ["install", "camera"])
        b = builder.record_question("b", ["install", "camera"])
        builder.record_question("a", ["install", "camera"])

        edges = builder.snapshot().related_edges()
        assert len(edges) == 1
        assert {edges[0].source, edges[0].target} == {a, b}
        assert edges[0].weight == 2.0


class TestUserGraph:
    def test_edges(self, builder):
        qid = builder.record_question("a", ["install"], "usage")
        builder.record_question("a", ["install"], "usage")
        edges = builder.snapshot().edges()

        frequency = [e for e in edges if e.type == "frequency"]
        assert frequency[0].source == qid
        assert frequency[0].target == "kw_install"
        assert frequency[0].weight == 2.0
        assert [e.target for e in edges if e.type == "category"] == ["ucat_usage"]

    def test_graph_data_includes_keyword_and_category_nodes(self, builder):
        builder.record_question("a", ["install"], "usage")
        data = builder.snapshot().graph_data()
        kinds = sorted(n["kind"] for n in data["nodes"])
        assert kinds == ["category", "keyword", "question"]

    def test_stats(self, builder, sample_events):
        builder.record_events(sample_events)
        stats = builder.snapshot().stats()

        assert stats.total_questions == 4
        assert stats.top_keywords[0] == {"keyword": "install", "count": 3}
        assert stats.top_questions[0] == {"question": "How do I install the camera?", "count": 2}
        assert stats.category_distribution[0] == {"category": "usage", "count": 3}
        # satisfaction of the first occurrence is kept: 4, 2, 1
        assert stats.avg_satisfaction == 2.3
        assert stats.negative_rate == 50

    def test_empty_stats(self):
        stats = UserGraph().stats()
        assert stats.total_questions == 0
        assert stats.avg_satisfaction == 0.0
        assert stats.negative_rate == 0

    def test_snapshot_is_independent(self, builder):
        builder.record_question("a", ["k"])
        snapshot = builder.snapshot()
        builder.record_question("b", ["k"])
        assert len(snapshot.questions) == 1

    def test_round_trip(self, builder, sample_events):
        builder.record_events(sample_events)
        graph = builder.snapshot()
        assert UserGraph.from_dict(graph.to_dict()) == graph

    def test_from_snapshot_resumes(self, builder, clock):
        a = builder.record_question("a", ["k1", "k2"])
        resumed = UserGraphBuilder.from_snapshot(builder.snapshot(), clock=clock)

        assert resumed.record_question("a", ["k1", "k2"]) == a
        b = resumed.record_question("b", ["k1", "k2"])

        graph = resumed.snapshot()
        assert graph.question(a).frequency == 2
        assert graph.question(b).created_order == 1
        assert graph.keyword_counts == {"k1": 3, "k2": 3}

    def test_from_dict_rejects_zero_frequency(self, builder):
        builder.record_question("a")
        data = builder.snapshot().to_dict()
        data["questions"][0]["frequency"] = 0
        with pytest.raises(ValueError):
            UserGraph.from_dict(data)

    def test_clear(self, builder):
        builder.record_event(QuestionEvent("a", ("k",)))
        builder.clear()
        assert builder.snapshot().is_empty()


class TestQuestionEventFromDict:
    def test_satisfaction_string_is_numeric(self, builder):
        event = QuestionEvent.from_dict({"content": "Reset password", "satisfaction": "4"})
        assert event.satisfaction == 4.0

        builder.record_event(event)
        builder.record_event(QuestionEvent.from_dict({"content": "Refund", "satisfaction": 2}))
        assert builder.snapshot().stats().avg_satisfaction == 3.0

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_missing_satisfaction(self, value):
        assert QuestionEvent.from_dict({"content": "a", "satisfaction": value}).satisfaction is None

    def test_non_numeric_satisfaction_rejected(self):
        with pytest.raises(ValueError):
            QuestionEvent.from_dict({"content": "a", "satisfaction": "great"})

    def test_unknown_sentiment_is_neutral(self):
        assert QuestionEvent.from_dict({"content": "a", "sentiment": "angry"}).sentiment == "neutral"
