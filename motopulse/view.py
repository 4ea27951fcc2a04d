"""
Dashboard view state.

Everything the dashboard shows is recomputed from the fetched review dicts and
an immutable ViewState, so filter/sort/page changes never touch the upstream API.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from . import rules, utils
from .rules_config import DEFAULT_CATEGORY

PAGE_SIZE = int(os.environ.get("MOTOPULSE_PAGE_SIZE", "12"))
ACTIONABLE_PAGE_SIZE = int(os.environ.get("MOTOPULSE_ACTIONABLE_PAGE_SIZE", "3"))

ALL = "all"
DATE_RANGES: Dict[str, str] = {
    "all": "All time",
    "today": "Today",
    "yesterday": "Yesterday",
    "last_7_days": "Last 7 Days",
    "this_month": "This Month",
}
EXPLICIT_DATE = "date"
SORT_KEYS = ("date", "sentiment")
SENTIMENT_RANK = {"negative": 0, "neutral": 1, "positive": 2}


@dataclass(frozen=True)
class ViewState:
    category: str = ALL
    date_range: str = ALL
    on_date: Optional[date] = None
    sort_key: str = "date"
    sort_desc: bool = True
    page: int = 1
    actionable_page: int = 1

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "ViewState":
        """Parse query arguments, falling back to defaults for anything invalid."""
        category = (args.get("category") or ALL).strip() or ALL

        date_range = args.get("range") or ALL
        explicit: Optional[date] = None
        if args.get("date"):
            parsed = utils.parse_timestamp(args["date"])
            if parsed is not None:
                explicit = parsed.date()
                date_range = EXPLICIT_DATE
        if date_range not in DATE_RANGES and date_range != EXPLICIT_DATE:
            date_range = ALL
        if date_range == EXPLICIT_DATE and explicit is None:
            date_range = ALL

        sort_key = args.get("sort") if args.get("sort") in SORT_KEYS else "date"
        sort_desc = args.get("dir", "desc") != "asc"

        return cls(
            category=category,
            date_range=date_range,
            on_date=explicit,
            sort_key=sort_key,
            sort_desc=sort_desc,
            page=_int_arg(args.get("page")),
            actionable_page=_int_arg(args.get("apage")),
        )

    def with_changes(self, **changes: Any) -> "ViewState":
        # Changing a filter or the sort order starts over at the first page.
        if "page" not in changes and set(changes) & {"category", "date_range", "on_date", "sort_key", "sort_desc"}:
            changes.setdefault("page", 1)
            changes.setdefault("actionable_page", 1)
        return replace(self, **changes)

    def to_args(self) -> Dict[str, Any]:
        args: Dict[str, Any] = {}
        if self.category != ALL:
            args["category"] = self.category
        if self.date_range == EXPLICIT_DATE and self.on_date is not None:
            args["date"] = self.on_date.isoformat()
        elif self.date_range != ALL:
            args["range"] = self.date_range
        if self.sort_key != "date":
            args["sort"] = self.sort_key
        if not self.sort_desc:
            args["dir"] = "asc"
        if self.page > 1:
            args["page"] = self.page
        if self.actionable_page > 1:
            args["apage"] = self.actionable_page
        return args


def _int_arg(value: Optional[str]) -> int:
    try:
        return max(int(value or 1), 1)
    except ValueError:
        return 1


@dataclass(frozen=True)
class Page:
    items: List[Dict[str, Any]]
    number: int
    total_pages: int
    total_items: int
    per_page: int

    @property
    def first_index(self) -> int:
        """1-based index of the first item on this page (0 if empty)."""
        return (self.number - 1) * self.per_page + 1 if self.items else 0

    @property
    def last_index(self) -> int:
        return self.first_index + len(self.items) - 1 if self.items else 0

    @property
    def has_prev(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages


@dataclass(frozen=True)
class DashboardView:
    state: ViewState
    metrics: Dict[str, int]
    metrics_label: str
    categories: List[str]
    reviews: Page
    actionable: Page
    filtered_count: int = 0
    range_labels: Dict[str, str] = field(default_factory=lambda: dict(DATE_RANGES))


def paginate(items: Sequence[Dict[str, Any]], page: int, per_page: int) -> Page:
    """1-based pagination; out-of-range pages clamp to the nearest valid page."""
    per_page = max(per_page, 1)
    total_pages = max(math.ceil(len(items) / per_page), 1)
    number = min(max(page, 1), total_pages)
    start = (number - 1) * per_page
    return Page(
        items=list(items[start:start + per_page]),
        number=number,
        total_pages=total_pages,
        total_items=len(items),
        per_page=per_page,
    )


def date_bounds(state: ViewState, now: datetime) -> Optional[Tuple[datetime, datetime]]:
    """Inclusive [start, end] datetime bounds for the state's date filter."""
    tz = now.tzinfo

    def start_of(d: date) -> datetime:
        return datetime.combine(d, time.min, tzinfo=tz)

    def end_of(d: date) -> datetime:
        return datetime.combine(d, time.max, tzinfo=tz)

    today = now.date()
    if state.date_range == "today":
        return start_of(today), end_of(today)
    if state.date_range == "yesterday":
        yesterday = today - timedelta(days=1)
        return start_of(yesterday), end_of(yesterday)
    if state.date_range == "last_7_days":
        return start_of(today - timedelta(days=7)), end_of(today)
    if state.date_range == "this_month":
        return start_of(today - timedelta(days=30)), end_of(today)
    if state.date_range == EXPLICIT_DATE and state.on_date is not None:
        return start_of(state.on_date), end_of(state.on_date)
    return None


def filter_reviews(reviews: Sequence[Dict[str, Any]], state: ViewState,
                   now: datetime) -> List[Dict[str, Any]]:
    out = [r for r in reviews if state.category == ALL or r.get("category") == state.category]
    bounds = date_bounds(state, now)
    if bounds is None:
        return out
    start, end = bounds
    kept = []
    for r in out:
        created = utils.parse_timestamp(r.get("createdAt") or "")
        if created is not None and start <= created <= end:
            kept.append(r)
    return kept


def _created_key(review: Dict[str, Any]) -> datetime:
    return utils.parse_timestamp(review.get("createdAt") or "") or utils.from_epoch(0)


def sort_reviews(reviews: Sequence[Dict[str, Any]], sort_key: str = "date",
                 descending: bool = True) -> List[Dict[str, Any]]:
    if sort_key == "sentiment":
        # Ties keep newest first regardless of direction
        by_date = sorted(reviews, key=_created_key, reverse=True)
        return sorted(by_date, key=lambda r: SENTIMENT_RANK.get(r.get("sentiment"), 1), reverse=descending)
    return sorted(reviews, key=_created_key, reverse=descending)


def actionable_score(review: Dict[str, Any]) -> int:
    """Questions weigh more than negative sentiment; a negative question scores highest."""
    return (2 if review.get("isQuestion") else 0) + (1 if review.get("sentiment") == "negative" else 0)


def actionable_reviews(reviews: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    flagged = [r for r in reviews if r.get("isQuestion") or r.get("sentiment") == "negative"]
    return sorted(flagged, key=actionable_score, reverse=True)


def compute_metrics(reviews: Sequence[Dict[str, Any]]) -> Dict[str, int]:
    out = {"total": len(reviews), "positive": 0, "neutral": 0, "negative": 0, "questions": 0}
    for r in reviews:
        sentiment = r.get("sentiment")
        if sentiment in out:
            out[sentiment] += 1
        if r.get("isQuestion"):
            out["questions"] += 1
    return out


def metrics_label(state: ViewState) -> str:
    if state.date_range == EXPLICIT_DATE and state.on_date is not None:
        d = state.on_date
        return f"{d:%B} {d.day}, {d.year}"
    labels = {
        "all": "All cached activity",
        "today": "Today's activity",
        "yesterday": "Yesterday's activity",
        "last_7_days": "Last 7 days activity",
        "this_month": "Last 30 days activity",
    }
    return labels.get(state.date_range, labels["all"])


def category_options(reviews: Sequence[Dict[str, Any]]) -> List[str]:
    """Configured categories first, then any extra labels seen in the data."""
    known = [label for _, label in rules.CATEGORY_RULES] + [DEFAULT_CATEGORY]
    seen = [r.get("category") for r in reviews]
    extra = sorted({c for c in seen if c and c not in known})
    return [ALL] + list(dict.fromkeys(known)) + extra


def build_view(reviews: Sequence[Dict[str, Any]], state: ViewState, now: Optional[datetime] = None,
               per_page: int = PAGE_SIZE, actionable_per_page: int = ACTIONABLE_PAGE_SIZE) -> DashboardView:
    now = now or utils.utcnow()
    filtered = filter_reviews(reviews, state, now)
    ordered = sort_reviews(filtered, state.sort_key, state.sort_desc)
    return DashboardView(
        state=state,
        metrics=compute_metrics(filtered),
        metrics_label=metrics_label(state),
        categories=category_options(reviews),
        reviews=paginate(ordered, state.page, per_page),
        actionable=paginate(actionable_reviews(ordered), state.actionable_page, actionable_per_page),
        filtered_count=len(filtered),
    )
