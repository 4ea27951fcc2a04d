"""Category, sentiment and question rules for classifying posts."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from . import utils
from .models import Post, Review
# Import configurable rules system
from .rules_config import (
    DEFAULT_CATEGORY,
    load_category_rules,
    load_question_keywords,
    load_sentiment_keywords,
)

# Load rules from config files or use defaults
CATEGORY_RULES: List[Tuple[str, str]] = load_category_rules()
SENTIMENT_KEYWORDS: Dict[str, List[str]] = load_sentiment_keywords()
QUESTION_KEYWORDS: List[str] = load_question_keywords()

SENTIMENTS = ("positive", "neutral", "negative")

# A label needs this many more hits than the opposite side.
SENTIMENT_MARGIN = 1
CONFIDENCE_FLOOR = 50
CONFIDENCE_CEILING = 95
CONFIDENCE_SCALE = 400


def regex_any(patterns: Iterable[str], text: str) -> bool:
    return any(re.search(p, text, flags=re.IGNORECASE) for p in patterns)


def count_keywords(keywords: Iterable[str], text: str) -> int:
    return sum(text.count(word) for word in keywords)


def categorize(text: str, rules: Optional[Sequence[Tuple[str, str]]] = None) -> str:
    t = text.lower()
    for pattern, label in (CATEGORY_RULES if rules is None else rules):
        if re.search(pattern, t):
            return label
    return DEFAULT_CATEGORY


def analyze_sentiment(title: str, body: str,
                      keywords: Optional[Dict[str, List[str]]] = None) -> Tuple[str, int, str]:
    """
    Score a post by counting positive and negative keyword occurrences.
    Returns: (label, confidence_percent, reasoning)
    """
    kw = SENTIMENT_KEYWORDS if keywords is None else keywords
    content = f"{title} {body}".lower()
    pos = count_keywords(kw["positive"], content)
    neg = count_keywords(kw["negative"], content)

    if pos - neg > SENTIMENT_MARGIN:
        label = "positive"
    elif neg - pos > SENTIMENT_MARGIN:
        label = "negative"
    else:
        label = "neutral"

    words = max(len(content.split()), 1)
    raw = CONFIDENCE_FLOOR + CONFIDENCE_SCALE * (pos + neg) / words
    confidence = int(min(max(round(raw), CONFIDENCE_FLOOR), CONFIDENCE_CEILING))

    reasoning = f"{pos} positive / {neg} negative keyword hits in {words} words"
    return label, confidence, reasoning


def detect_question(title: str, body: str, keywords: Optional[List[str]] = None) -> bool:
    kw = QUESTION_KEYWORDS if keywords is None else keywords
    text = f"{title} {body}".lower()
    return "?" in title or any(k in text for k in kw) or "question" in text


def classify_post(post: Post) -> Review:
    sentiment, confidence, reasoning = analyze_sentiment(post.title, post.body)
    return Review(
        id=post.id,
        title=post.title,
        body=post.body,
        summary=utils.summarize(post.body),
        category=categorize(post.text),
        sentiment=sentiment,
        confidence=confidence,
        reasoning=reasoning,
        upvotes=post.upvotes,
        comments=post.comments,
        url=post.url,
        created_at=utils.from_epoch(post.created_utc),
        channel=post.channel,
        is_question=detect_question(post.title, post.body),
        author=post.author,
    )


def classify_posts(posts: Iterable[Post]) -> List[Review]:
    """Classify each post independently; output order follows input order."""
    return [classify_post(p) for p in posts]
