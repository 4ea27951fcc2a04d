"""Reddit API client: client-credentials token exchange and post listing."""

from __future__ import annotations

import base64
import json
import logging
import os
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigurationError, UpstreamAuthError, UpstreamFetchError
from .models import Post

logger = logging.getLogger(__name__)

TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
API_BASE = "https://oauth.reddit.com"
USER_AGENT = os.environ.get("REDDIT_USER_AGENT", "MotoPulse/1.0 (Motorola review tracker)")

PRIMARY_CHANNEL = "motorola"
SECONDARY_CHANNELS = ["MotoG", "Android", "smartphones", "PickAnAndroidForMe"]
SEARCH_QUERY = "motorola"

PRIMARY_PAGES = 3
PRIMARY_PAGE_LIMIT = 100
SEARCH_LIMIT = 50
SEARCH_WINDOW = "month"

# Seconds between secondary channel requests
REQUEST_DELAY = float(os.environ.get("MOTOPULSE_REQUEST_DELAY", "1.0"))

# Timeout for upstream requests (seconds)
FETCH_TIMEOUT = 30.0


def _http_error_message(status: int, reason: Any) -> str:
    if status == 401:
        return "HTTP 401: Unauthorized (check credentials)"
    if status == 403:
        return "HTTP 403: Forbidden"
    if status == 404:
        return "HTTP 404: Not Found"
    if status == 429:
        return "HTTP 429: Rate Limited (too many requests)"
    return f"HTTP {status}: {reason}"


def get_access_token() -> str:
    """Exchange the app key/secret for a bearer token."""
    client_id = os.environ.get("REDDIT_CLIENT_ID")
    client_secret = os.environ.get("REDDIT_CLIENT_SECRET")
    if not client_id or not client_secret:
        raise ConfigurationError(
            "Reddit credentials not configured: set REDDIT_CLIENT_ID and REDDIT_CLIENT_SECRET"
        )

    auth = base64.b64encode(f"{client_id}:{client_secret}".encode("utf-8")).decode("ascii")
    req = urllib.request.Request(
        TOKEN_URL,
        data=urllib.parse.urlencode({"grant_type": "client_credentials"}).encode("ascii"),
        headers={
            "Authorization": f"Basic {auth}",
            "Content-Type": "application/x-www-form-urlencoded",
            "User-Agent": USER_AGENT,
        },
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=FETCH_TIMEOUT) as response:
            payload = json.loads(response.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        raise UpstreamAuthError(
            f"Failed to get access token: {_http_error_message(e.code, e.reason)}", e.code
        ) from e
    except urllib.error.URLError as e:
        raise UpstreamAuthError(f"Failed to get access token: Network error: {e.reason}") from e
    except ValueError as e:
        raise UpstreamAuthError("Failed to get access token: invalid JSON response") from e

    token = payload.get("access_token") if isinstance(payload, dict) else None
    if not token:
        raise UpstreamAuthError("Failed to get access token: no access_token in response")
    return token


def get_json(path: str, token: str, params: Dict[str, Any]) -> Dict[str, Any]:
    """GET an API path with the bearer token and decode the JSON body."""
    query = urllib.parse.urlencode({k: v for k, v in params.items() if v is not None})
    req = urllib.request.Request(
        f"{API_BASE}{path}?{query}",
        headers={
            "Authorization": f"Bearer {token}",
            "User-Agent": USER_AGENT,
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=FETCH_TIMEOUT) as response:
            return json.loads(response.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        raise UpstreamFetchError(_http_error_message(e.code, e.reason), e.code) from e
    except urllib.error.URLError as e:
        raise UpstreamFetchError(f"Network error: {e.reason}") from e
    except ValueError as e:
        raise UpstreamFetchError(f"Invalid JSON from {path}") from e


def parse_listing(payload: Dict[str, Any]) -> Tuple[List[Post], Optional[str]]:
    """Extract posts and the continuation cursor from a listing response."""
    if not isinstance(payload, dict):
        raise UpstreamFetchError("Unexpected listing shape")
    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise UpstreamFetchError("Unexpected listing shape")
    children = data.get("children") or []
    if not isinstance(children, list):
        raise UpstreamFetchError("Unexpected listing shape")

    posts: List[Post] = []
    for child in children:
        child_data = child.get("data") if isinstance(child, dict) else None
        post = Post.from_listing(child_data) if isinstance(child_data, dict) else None
        if post is None:
            logger.debug("Dropping malformed listing child")
            continue
        posts.append(post)
    return posts, data.get("after") or None


def fetch_primary(token: str, channel: str = PRIMARY_CHANNEL,
                  pages: int = PRIMARY_PAGES) -> List[Post]:
    posts: List[Post] = []
    after: Optional[str] = None
    for _ in range(pages):
        payload = get_json(f"/r/{channel}/new", token, {"limit": PRIMARY_PAGE_LIMIT, "after": after})
        page_posts, after = parse_listing(payload)
        posts.extend(page_posts)
        if not after:
            break
    return posts


def search_channel(token: str, channel: str, query: str = SEARCH_QUERY) -> List[Post]:
    payload = get_json(
        f"/r/{channel}/search",
        token,
        {"q": query, "restrict_sr": 1, "sort": "new", "limit": SEARCH_LIMIT, "t": SEARCH_WINDOW},
    )
    posts, _ = parse_listing(payload)
    return posts


def fetch_posts(token: str) -> List[Post]:
    """
    Fetch raw posts from the primary channel and all secondary channels.
    A failing channel is logged and skipped.
    """
    all_posts: List[Post] = []
    try:
        primary = fetch_primary(token)
        logger.info("Fetched %d posts from r/%s", len(primary), PRIMARY_CHANNEL)
        all_posts.extend(primary)
    except UpstreamFetchError as e:
        logger.warning("Skipping r/%s: %s", PRIMARY_CHANNEL, e)

    for i, channel in enumerate(SECONDARY_CHANNELS):
        if i > 0:
            time.sleep(REQUEST_DELAY)
        try:
            found = search_channel(token, channel)
            logger.info("Fetched %d posts from r/%s", len(found), channel)
            all_posts.extend(found)
        except UpstreamFetchError as e:
            logger.warning("Skipping r/%s: %s", channel, e)

    return all_posts
