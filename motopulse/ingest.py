"""Review ingestion: fetch, filter, classify and cache."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, Iterable, List, Optional

from . import db, reddit, rules, utils
from .errors import CacheReadError, CacheWriteError
from .models import Post, Review
from .rules_config import load_relevance_rules

logger = logging.getLogger(__name__)

RELEVANCE_RULES: Dict[str, Any] = load_relevance_rules()

MAX_POSTS = 100
CACHE_READ_LIMIT = 500

_last_fetch_status: Dict[str, Any] = {"last_run_utc": None, "last_error": None, "reviews_fetched": 0}


def dedupe_posts(posts: Iterable[Post]) -> List[Post]:
    """Unique by id; the last instance seen for an id wins."""
    by_id: Dict[str, Post] = {}
    for p in posts:
        by_id[p.id] = p
    return list(by_id.values())


def is_primary(post: Post, primary_channel: str = reddit.PRIMARY_CHANNEL) -> bool:
    return post.channel.lower() == primary_channel.lower()


def is_relevant(post: Post, primary_channel: str = reddit.PRIMARY_CHANNEL,
                relevance: Optional[Dict[str, Any]] = None) -> bool:
    r = RELEVANCE_RULES if relevance is None else relevance
    if is_primary(post, primary_channel):
        return True
    text = post.text
    if any(term in text for term in r["terms"]):
        return True
    return rules.regex_any([r["pattern"]], text)


def rank_posts(posts: Iterable[Post], primary_channel: str = reddit.PRIMARY_CHANNEL) -> List[Post]:
    """Primary channel first, then by upvotes + comments descending."""
    return sorted(posts, key=lambda p: (0 if is_primary(p, primary_channel) else 1, -p.engagement))


def select_posts(posts: Iterable[Post], primary_channel: str = reddit.PRIMARY_CHANNEL,
                 limit: int = MAX_POSTS) -> List[Post]:
    unique = dedupe_posts(posts)
    relevant = [p for p in unique if is_relevant(p, primary_channel)]
    return rank_posts(relevant, primary_channel)[:limit]


def refresh_reviews(conn: sqlite3.Connection) -> List[Review]:
    """
    Run the full pipeline: token -> fetch -> filter -> classify -> cache.
    Token failures propagate; cache write failures are logged only.
    """
    global _last_fetch_status
    started = utils.utcnow()
    try:
        token = reddit.get_access_token()
        raw = reddit.fetch_posts(token)
        selected = select_posts(raw)
        logger.info("Selected %d of %d fetched posts", len(selected), len(raw))
        reviews = rules.classify_posts(selected)
    except Exception as ex:
        _last_fetch_status = {
            "last_run_utc": started.isoformat(),
            "last_error": f"{type(ex).__name__}: {ex}",
            "reviews_fetched": 0,
        }
        raise

    store_reviews(conn, reviews)
    _last_fetch_status = {
        "last_run_utc": started.isoformat(),
        "last_error": None,
        "reviews_fetched": len(reviews),
    }
    return reviews


def store_reviews(conn: sqlite3.Connection, reviews: List[Review]) -> None:
    fetched_at = utils.utcnow()
    try:
        written, failed = db.upsert_reviews(conn, [r.to_row(fetched_at) for r in reviews])
        logger.info("Cached %d reviews (%d failed)", written, failed)
    except CacheWriteError as e:
        logger.warning("Cache write failed: %s", e)
        return
    try:
        db.maybe_run_daily_cleanup(conn)
    except sqlite3.Error as e:
        logger.warning("Cache cleanup failed: %s", e)


def cached_reviews(conn: sqlite3.Connection, limit: int = CACHE_READ_LIMIT) -> List[Review]:
    try:
        rows = db.recent_reviews(conn, limit)
    except CacheReadError as e:
        logger.warning("Cache read failed, treating as miss: %s", e)
        return []
    return [Review.from_row(row) for row in rows]


def load_reviews(conn: sqlite3.Connection, refresh: bool = False) -> List[Dict[str, Any]]:
    """Serve cached reviews unless empty or a refresh is forced; returns API dicts."""
    if not refresh:
        cached = cached_reviews(conn)
        if cached:
            return [r.to_api() for r in cached]
    return [r.to_api() for r in refresh_reviews(conn)]


def load_cached_reviews(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    """Cache only; never contacts Reddit. Returns API dicts."""
    return [r.to_api() for r in cached_reviews(conn)]


def get_fetch_status() -> Dict[str, Any]:
    """Get the last refresh status."""
    return _last_fetch_status.copy()
