"""
Tests for the analytics engine
"""

from datetime import datetime, timedelta

import pytest

from analytics import engine
from analytics.engine import build_report
from analytics.sentiment import analyze_sentiment
from db.models import ChatSession, Message

START = datetime(2024, 3, 1, 22, 0, 0)


def make_session(created_at=START):
    return ChatSession(id=1, user_id=1, name="Check-in", is_archived=False, created_at=created_at)


def make_messages(contents, start=START, step=timedelta(minutes=5), first_is_model=False):
    msgs = []
    for i, text in enumerate(contents):
        msgs.append(Message(
            id=i + 1,
            session_id=1,
            content=text,
            is_model=(i % 2 == 1) != first_is_model,
            created_at=start + step * (i + 1),
        ))
    return msgs


class TestEmptyAndDegenerate:
    def test_zero_messages(self):
        report = build_report(make_session(), [])
        assert report.total_messages == 0
        assert report.response_rate is None
        assert report.average_length == 0
        assert report.engagement_score == 0
        assert report.session_duration_hours == 0
        assert report.timeline == []
        assert report.chronological_summary == []
        assert report.mood == "neutral"
        assert report.insights.progress == "Initial Exploration"

    def test_only_model_messages(self):
        msgs = make_messages(["welcome back"], first_is_model=True)
        report = build_report(make_session(), msgs)
        assert report.user_messages == 0
        assert report.response_rate is None
        assert 0 <= report.engagement_score <= 100

    def test_single_user_message_has_full_consistency(self):
        report = build_report(make_session(), make_messages(["just one message"]))
        assert report.length_variance == 0
        assert report.expression_consistency == 100
        assert report.response_rate == 0.0
        # 0.4*100 + 2.5*1 + 0 = 42.5, rounded half up
        assert report.engagement_score == 43


class TestMetrics:
    def test_equal_lengths_give_zero_variance(self):
        msgs = make_messages(["a" * 10, "model reply", "b" * 10, "model reply"])
        report = build_report(make_session(), msgs)
        assert report.average_length == 10
        assert report.length_variance == 0
        assert report.expression_consistency == 100

    def test_partition_and_response_rate(self):
        msgs = make_messages(["hi", "hello", "how are you", "fine", "ok"])
        report = build_report(make_session(), msgs)
        assert report.total_messages == 5
        assert report.user_messages == 3
        assert report.model_messages == 2
        assert report.response_rate == pytest.approx(66.7)

    def test_variance_lowers_consistency(self):
        msgs = make_messages(["x" * 10, "r", "x" * 500, "r"])
        report = build_report(make_session(), msgs)
        assert report.average_length == 255
        assert report.length_variance == 60025
        assert report.expression_consistency == pytest.approx(100 - 60.025)

    def test_consistency_is_clamped(self):
        assert engine.expression_consistency(10 ** 9) == 0
        assert engine.expression_consistency(0) == 100

    def test_participation_caps_at_twenty(self):
        contents = []
        for i in range(21):
            contents += [f"user message {i}", f"reply {i}"]
        msgs = make_messages(contents)
        report = build_report(make_session(), msgs)
        assert report.total_messages == 42

        c, rr = report.expression_consistency, report.response_rate
        assert engine.engagement_score(c, 42, rr) == engine.engagement_score(c, 20, rr)
        assert report.engagement_score == engine.engagement_score(c, 20, rr)

    @pytest.mark.parametrize("total", [1, 2, 5, 20, 100])
    @pytest.mark.parametrize("consistency", [0, 50, 100])
    @pytest.mark.parametrize("rate", [None, 0.0, 100.0, 400.0])
    def test_score_bounds(self, total, consistency, rate):
        assert 0 <= engine.engagement_score(consistency, total, rate) <= 100

    def test_duration_rounds_to_nearest_hour(self):
        msgs = make_messages(["a", "b"], step=timedelta(minutes=50))
        # last message at +100 min -> 1.67h -> 2
        assert build_report(make_session(), msgs).session_duration_hours == 2

        msgs = make_messages(["a", "b"], step=timedelta(minutes=40))
        # +80 min -> 1.33h -> 1
        assert build_report(make_session(), msgs).session_duration_hours == 1

    def test_report_is_recomputed(self):
        session = make_session()
        msgs = make_messages(["a", "b"])
        first = build_report(session, msgs)
        msgs += make_messages(["c", "d"], start=START + timedelta(hours=1))
        second = build_report(session, msgs)
        assert second.total_messages == first.total_messages + 2


class TestTimelineAndSummary:
    def test_timeline_groups_by_utc_date(self):
        msgs = make_messages(["a", "b", "c", "d"], step=timedelta(hours=1))
        # 23:00, 00:00, 01:00, 02:00 starting 2024-03-01 22:00
        report = build_report(make_session(), msgs)
        assert [(p.date, p.count) for p in report.timeline] == [
            ("2024-03-01", 1),
            ("2024-03-02", 3),
        ]

    def test_summary_is_user_only_sorted(self):
        msgs = make_messages(["first", "r1", "second", "r2"])
        msgs[0].created_at, msgs[2].created_at = msgs[2].created_at, msgs[0].created_at
        report = build_report(make_session(), msgs)
        assert [e.content for e in report.chronological_summary] == ["second", "first"]
        assert all(e.timestamp for e in report.chronological_summary)

    def test_mood_tracks_latest_user_message(self):
        msgs = make_messages(["I feel sad and lonely", "r", "I feel happy and grateful today", "r"])
        report = build_report(make_session(), msgs)
        assert [e.sentiment for e in report.chronological_summary] == ["negative", "positive"]
        assert report.mood == "positive"


class TestInsights:
    @pytest.mark.parametrize("avg,prefix", [
        (150, "You tend to express yourself in detail"),
        (101, "You tend to express yourself in detail"),
        (100, "Your responses show a good balance"),
        (51, "Your responses show a good balance"),
        (50, "Your responses are brief"),
    ])
    def test_expression_ladder(self, avg, prefix):
        assert engine.expression_insight(avg).startswith(prefix)

    @pytest.mark.parametrize("score,prefix", [
        (80, "You're showing strong commitment"),
        (79, "You're maintaining a steady"),
        (60, "You're maintaining a steady"),
        (59, "You're taking initial steps"),
    ])
    def test_engagement_ladder(self, score, prefix):
        assert engine.engagement_insight(score).startswith(prefix)

    @pytest.mark.parametrize("total,stage", [
        (0, "Initial Exploration"),
        (4, "Initial Exploration"),
        (5, "Building Rapport"),
        (14, "Building Rapport"),
        (15, "Active Engagement"),
        (29, "Active Engagement"),
        (30, "Deep Exploration"),
    ])
    def test_progress_ladder(self, total, stage):
        assert engine.progress_stage(total) == stage

    def test_clinical_summary(self):
        report = build_report(make_session(), make_messages(["a" * 10, "r"]))
        assert report.clinical_summary.startswith("Patient engaged in 2 exchanges over 0 hours")
        assert "100% expression consistency" in report.clinical_summary


class TestSentiment:
    def test_polarity(self):
        assert analyze_sentiment("I feel happy and grateful today") == "positive"
        assert analyze_sentiment("so tired and stressed") == "negative"
        assert analyze_sentiment("happy but sad") == "neutral"
        assert analyze_sentiment("") == "neutral"
