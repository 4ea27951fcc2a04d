"""Tests for dashboard filtering, sorting and pagination."""

import unittest
from datetime import date, datetime, timedelta, timezone

from motopulse import view

NOW = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)


def make_review(review_id, created, sentiment="neutral", category="General", is_question=False):
    return {
        "id": review_id,
        "title": f"Review {review_id}",
        "summary": "",
        "category": category,
        "sentiment": sentiment,
        "confidence": 50,
        "reasoning": "",
        "upvotes": 0,
        "comments": 0,
        "url": "",
        "createdAt": created.isoformat(),
        "channel": "motorola",
        "isQuestion": is_question,
    }


class TestPaginate(unittest.TestCase):

    def setUp(self):
        self.items = [{"id": i} for i in range(1, 131)]

    def test_pages_of_51(self):
        page1 = view.paginate(self.items, 1, 51)
        self.assertEqual([r["id"] for r in page1.items], list(range(1, 52)))
        self.assertEqual(page1.total_pages, 3)

        page3 = view.paginate(self.items, 3, 51)
        self.assertEqual([r["id"] for r in page3.items], list(range(103, 131)))
        self.assertEqual(len(page3.items), 28)
        self.assertEqual((page3.first_index, page3.last_index), (103, 130))
        self.assertFalse(page3.has_next)
        self.assertTrue(page3.has_prev)

    def test_out_of_range_clamps(self):
        page4 = view.paginate(self.items, 4, 51)
        self.assertEqual(page4.number, 3)
        self.assertEqual(page4.items, view.paginate(self.items, 3, 51).items)
        self.assertEqual(view.paginate(self.items, 0, 51).number, 1)

    def test_empty(self):
        page = view.paginate([], 5, 10)
        self.assertEqual((page.number, page.total_pages, page.items), (1, 1, []))
        self.assertEqual(page.first_index, 0)


class TestFilters(unittest.TestCase):

    def setUp(self):
        self.reviews = [
            make_review("today", NOW.replace(hour=8), category="Camera"),
            make_review("yesterday", NOW - timedelta(days=1) + timedelta(hours=8)),
            make_review("five_days", NOW - timedelta(days=5)),
            make_review("twenty_days", NOW - timedelta(days=20), category="Camera"),
            make_review("sixty_days", NOW - timedelta(days=60)),
        ]

    def ids(self, state):
        return [r["id"] for r in view.filter_reviews(self.reviews, state, NOW)]

    def test_quick_ranges(self):
        test_cases = {
            "all": ["today", "yesterday", "five_days", "twenty_days", "sixty_days"],
            "today": ["today"],
            "yesterday": ["yesterday"],
            "last_7_days": ["today", "yesterday", "five_days"],
            "this_month": ["today", "yesterday", "five_days", "twenty_days"],
        }
        for date_range, expected in test_cases.items():
            with self.subTest(date_range=date_range):
                self.assertEqual(self.ids(view.ViewState(date_range=date_range)), expected)

    def test_explicit_date(self):
        day = (NOW - timedelta(days=20)).date()
        state = view.ViewState(date_range=view.EXPLICIT_DATE, on_date=day)
        self.assertEqual(self.ids(state), ["twenty_days"])

    def test_category_filter(self):
        self.assertEqual(self.ids(view.ViewState(category="Camera")), ["today", "twenty_days"])
        self.assertEqual(self.ids(view.ViewState(category="Camera", date_range="today")), ["today"])


class TestSortAndActionable(unittest.TestCase):

    def setUp(self):
        self.reviews = [
            make_review("a", NOW - timedelta(hours=1), sentiment="neutral", is_question=True),
            make_review("b", NOW - timedelta(hours=2), sentiment="negative"),
            make_review("c", NOW - timedelta(hours=3), sentiment="negative", is_question=True),
            make_review("d", NOW - timedelta(hours=4), sentiment="positive"),
        ]

    def test_sort_by_date(self):
        self.assertEqual([r["id"] for r in view.sort_reviews(self.reviews, "date", True)], ["a", "b", "c", "d"])
        self.assertEqual([r["id"] for r in view.sort_reviews(self.reviews, "date", False)], ["d", "c", "b", "a"])

    def test_sort_by_sentiment(self):
        desc = [r["id"] for r in view.sort_reviews(self.reviews, "sentiment", True)]
        self.assertEqual(desc, ["d", "a", "b", "c"])
        asc = [r["id"] for r in view.sort_reviews(self.reviews, "sentiment", False)]
        self.assertEqual(asc, ["b", "c", "a", "d"])

    def test_actionable_ranking(self):
        ranked = view.actionable_reviews(self.reviews)
        self.assertEqual([r["id"] for r in ranked], ["c", "a", "b"])

    def test_metrics(self):
        metrics = view.compute_metrics(self.reviews)
        self.assertEqual(metrics, {"total": 4, "positive": 1, "neutral": 1, "negative": 2, "questions": 2})

    def test_build_view(self):
        state = view.ViewState(page=9, actionable_page=2)
        v = view.build_view(self.reviews, state, NOW, per_page=2, actionable_per_page=2)
        self.assertEqual(v.reviews.number, 2)
        self.assertEqual([r["id"] for r in v.reviews.items], ["c", "d"])
        self.assertEqual([r["id"] for r in v.actionable.items], ["b"])
        self.assertEqual(v.metrics["total"], 4)
        self.assertEqual(v.categories[0], "all")
        self.assertIn("General", v.categories)


class TestViewState(unittest.TestCase):

    def test_from_args(self):
        state = view.ViewState.from_args({
            "category": "Camera", "range": "today", "sort": "sentiment",
            "dir": "asc", "page": "3", "apage": "x",
        })
        self.assertEqual(state, view.ViewState(category="Camera", date_range="today", sort_key="sentiment",
                                               sort_desc=False, page=3, actionable_page=1))

    def test_from_args_invalid_values(self):
        state = view.ViewState.from_args({"range": "bogus", "sort": "upvotes", "page": "-2"})
        self.assertEqual(state, view.ViewState())

    def test_explicit_date_arg(self):
        state = view.ViewState.from_args({"date": "2026-10-01"})
        self.assertEqual(state.date_range, view.EXPLICIT_DATE)
        self.assertEqual(state.on_date, date(2026, 10, 1))
        self.assertEqual(view.metrics_label(state), "October 1, 2026")

    def test_args_round_trip(self):
        state = view.ViewState(category="Razr", date_range="last_7_days", sort_key="sentiment", page=2)
        self.assertEqual(view.ViewState.from_args({k: str(v) for k, v in state.to_args().items()}), state)

    def test_filter_change_resets_pages(self):
        state = view.ViewState(page=4, actionable_page=2)
        changed = state.with_changes(category="Camera")
        self.assertEqual((changed.page, changed.actionable_page), (1, 1))
        self.assertEqual(state.page, 4)
        self.assertEqual(state.with_changes(page=5).actionable_page, 2)


if __name__ == '__main__':
    unittest.main()
