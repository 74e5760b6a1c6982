# analytics/sentiment.py
# keyword polarity, no model involved

POSITIVE_WORDS = {
    "happy", "joy", "excited", "great", "better", "good", "wonderful", "peaceful",
    "calm", "relieved", "hopeful", "confident", "grateful", "thankful", "love",
    "excellent", "fantastic", "amazing", "awesome", "delighted", "pleased",
    "proud", "comfortable", "satisfied", "optimistic",
}

NEGATIVE_WORDS = {
    "sad", "angry", "anxious", "worried", "stressed", "depressed", "overwhelmed",
    "frustrated", "afraid", "scared", "unhappy", "terrible", "awful", "hopeless",
    "hurt", "lonely", "miserable", "upset", "disappointed", "confused", "lost",
    "troubled", "concerned", "exhausted", "tired", "pain", "struggle",
}

POSITIVE = "positive"
NEUTRAL = "neutral"
NEGATIVE = "negative"


def analyze_sentiment(text: str) -> str:
    words = (text or "").lower().split()
    pos = sum(1 for w in words if w in POSITIVE_WORDS)
    neg = sum(1 for w in words if w in NEGATIVE_WORDS)
    if pos > neg:
        return POSITIVE
    if neg > pos:
        return NEGATIVE
    return NEUTRAL
