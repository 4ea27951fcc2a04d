"""Post and Review records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from . import utils

REDDIT_BASE_URL = "https://reddit.com"
AUTHOR_PLACEHOLDER = "[reddit user]"
CACHED_REASONING = "Loaded from cache"


@dataclass(frozen=True)
class Post:
    id: str
    title: str
    body: str
    channel: str
    upvotes: int
    comments: int
    permalink: str
    created_utc: float
    author: str = AUTHOR_PLACEHOLDER

    @classmethod
    def from_listing(cls, data: Mapping[str, Any]) -> Optional["Post"]:
        """Build a Post from a listing child's ``data`` object.

        Returns None when the id or creation time is missing, or when a
        numeric field does not parse.
        """
        post_id = data.get("id")
        created = data.get("created_utc")
        if not post_id or created is None:
            return None
        try:
            upvotes = int(data.get("ups") or 0)
            comments = int(data.get("num_comments") or 0)
            created_utc = float(created)
        except (TypeError, ValueError):
            return None
        return cls(
            id=str(post_id),
            title=utils.normalize_ws(str(data.get("title") or "")),
            body=str(data.get("selftext") or ""),
            channel=str(data.get("subreddit") or ""),
            upvotes=upvotes,
            comments=comments,
            permalink=str(data.get("permalink") or ""),
            created_utc=created_utc,
            author=str(data.get("author") or AUTHOR_PLACEHOLDER),
        )

    @property
    def url(self) -> str:
        return f"{REDDIT_BASE_URL}{self.permalink}"

    @property
    def engagement(self) -> int:
        return self.upvotes + self.comments

    @property
    def text(self) -> str:
        return f"{self.title} {self.body}".lower()


@dataclass(frozen=True)
class Review:
    id: str
    title: str
    body: str
    summary: str
    category: str
    sentiment: str
    confidence: int  # percent, 0-100
    reasoning: str
    upvotes: int
    comments: int
    url: str
    created_at: datetime
    channel: str
    is_question: bool
    author: str = AUTHOR_PLACEHOLDER

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "category": self.category,
            "sentiment": self.sentiment,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "upvotes": self.upvotes,
            "comments": self.comments,
            "url": self.url,
            "createdAt": self.created_at.isoformat(),
            "channel": self.channel,
            "isQuestion": self.is_question,
        }

    def to_row(self, fetched_at: datetime) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.body,
            "author": self.author,
            "channel": self.channel,
            "url": self.url,
            "upvotes": self.upvotes,
            "comments": self.comments,
            "sentiment": self.sentiment,
            "confidence": utils.confidence_to_unit(self.confidence),
            "category": self.category,
            "has_question": 1 if self.is_question else 0,
            "created_at": self.created_at.isoformat(),
            "fetched_at": fetched_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Review":
        content = row["content"] or ""
        return cls(
            id=row["id"],
            title=row["title"],
            body=content,
            summary=utils.summarize(content),
            category=row["category"],
            sentiment=row["sentiment"],
            confidence=utils.confidence_to_percent(row["confidence"]),
            reasoning=CACHED_REASONING,
            upvotes=int(row["upvotes"] or 0),
            comments=int(row["comments"] or 0),
            url=row["url"],
            created_at=utils.parse_timestamp(row["created_at"]) or utils.from_epoch(0),
            channel=row["channel"],
            is_question=bool(row["has_question"]),
            author=row["author"] or AUTHOR_PLACEHOLDER,
        )
