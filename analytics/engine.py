# analytics/engine.py
"""
Engagement analytics for one session.

Everything here is a pure function of the session row and its messages in
stored order: no store access, no caching. `build_report` is the entry point;
the smaller helpers are exposed because the HTTP layer and tests use them
individually.

Policies:
- zero user messages: `response_rate` is None and contributes nothing to the
  engagement score; average length and variance are 0 (consistency 100).
- empty history: `engagement_score` is 0.
- timeline buckets use the UTC calendar date.
"""

import math
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from pydantic import BaseModel

from analytics.sentiment import analyze_sentiment, NEUTRAL

CONSISTENCY_DIVISOR = 1000
PARTICIPATION_CAP = 20


# -------------------------
# Report schema
# -------------------------

class TimelinePoint(BaseModel):
    date: str
    count: int

class SummaryEntry(BaseModel):
    timestamp: datetime
    content: str
    sentiment: str

class Insights(BaseModel):
    expression: str
    engagement: str
    progress: str
    participation: str

class SessionReport(BaseModel):
    session_id: int
    session_name: str
    session_started: datetime
    total_messages: int
    user_messages: int
    model_messages: int
    response_rate: Optional[float]
    average_length: int
    length_variance: int
    expression_consistency: float
    session_duration_hours: int
    engagement_score: int
    timeline: List[TimelinePoint]
    chronological_summary: List[SummaryEntry]
    insights: Insights
    mood: str
    clinical_summary: str


# -------------------------
# Helpers
# -------------------------

def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))

def _clamp(lo: float, hi: float, x: float) -> float:
    return max(lo, min(hi, x))

def _utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt  # stored naive values are already UTC
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


# -------------------------
# Metrics
# -------------------------

def response_rate(user_count: int, model_count: int) -> Optional[float]:
    if user_count == 0:
        return None
    return _round_half_up(model_count / user_count * 100 * 10) / 10

def average_length(lengths: Sequence[int]) -> int:
    if not lengths:
        return 0
    return _round_half_up(sum(lengths) / len(lengths))

def length_variance(lengths: Sequence[int], mean: int) -> int:
    """Population variance around the (rounded) mean."""
    if not lengths:
        return 0
    return _round_half_up(sum((n - mean) ** 2 for n in lengths) / len(lengths))

def expression_consistency(variance: float) -> float:
    return _clamp(0, 100, 100 - variance / CONSISTENCY_DIVISOR)

def engagement_score(consistency: float, total: int, rate: Optional[float]) -> int:
    if total == 0:
        return 0
    raw = (
        consistency * 0.4
        + min(total, PARTICIPATION_CAP) * 2.5
        + (rate or 0) * 0.3
    )
    return int(_clamp(0, 100, _round_half_up(raw)))

def session_duration_hours(started: datetime, messages: Sequence) -> int:
    if not messages:
        return 0
    elapsed = _utc(messages[-1].created_at) - _utc(started)
    return _round_half_up(elapsed.total_seconds() / 3600)

def timeline(messages: Sequence) -> List[TimelinePoint]:
    counts = Counter(_utc(m.created_at).date().isoformat() for m in messages)
    return [TimelinePoint(date=d, count=c) for d, c in sorted(counts.items())]

def chronological_summary(messages: Sequence) -> List[SummaryEntry]:
    user_msgs = sorted((m for m in messages if not m.is_model), key=lambda m: _utc(m.created_at))
    return [
        SummaryEntry(timestamp=m.created_at, content=m.content, sentiment=analyze_sentiment(m.content))
        for m in user_msgs
    ]


# -------------------------
# Insight ladders
# -------------------------

def expression_insight(avg_len: int) -> str:
    if avg_len > 100:
        return "You tend to express yourself in detail, which can be helpful for processing complex emotions and thoughts."
    if avg_len > 50:
        return "Your responses show a good balance of reflection and conciseness."
    return "Your responses are brief and focused. Consider elaborating more to explore your thoughts deeply."

def engagement_insight(score: int) -> str:
    if score >= 80:
        return "You're showing strong commitment to self-reflection and growth through consistent, meaningful dialogue."
    if score >= 60:
        return "You're maintaining a steady therapeutic rhythm. Regular engagement helps build lasting insights."
    return "You're taking initial steps in your therapeutic journey. Remember, progress comes with regular reflection."

def progress_stage(total: int) -> str:
    if total < 5:
        return "Initial Exploration"
    if total < 15:
        return "Building Rapport"
    if total < 30:
        return "Active Engagement"
    return "Deep Exploration"

def participation_label(score: int) -> str:
    return "consistent" if score >= 70 else "variable"


# -------------------------
# Report
# -------------------------

def build_report(session, messages: Sequence) -> SessionReport:
    user_msgs = [m for m in messages if not m.is_model]
    model_count = len(messages) - len(user_msgs)
    total = len(messages)

    lengths = [len(m.content) for m in user_msgs]
    avg = average_length(lengths)
    variance = length_variance(lengths, avg)
    consistency = expression_consistency(variance)
    rate = response_rate(len(user_msgs), model_count)
    score = engagement_score(consistency, total, rate)
    hours = session_duration_hours(session.created_at, messages)

    summary = chronological_summary(messages)
    mood = summary[-1].sentiment if summary else NEUTRAL
    participation = participation_label(score)

    return SessionReport(
        session_id=session.id,
        session_name=session.name,
        session_started=session.created_at,
        total_messages=total,
        user_messages=len(user_msgs),
        model_messages=model_count,
        response_rate=rate,
        average_length=avg,
        length_variance=variance,
        expression_consistency=consistency,
        session_duration_hours=hours,
        engagement_score=score,
        timeline=timeline(messages),
        chronological_summary=summary,
        insights=Insights(
            expression=expression_insight(avg),
            engagement=engagement_insight(score),
            progress=progress_stage(total),
            participation=participation,
        ),
        mood=mood,
        clinical_summary=(
            f"Patient engaged in {total} exchanges over {hours} hours, "
            f"demonstrating {participation} participation "
            f"with {_round_half_up(consistency)}% expression consistency."
        ),
    )
