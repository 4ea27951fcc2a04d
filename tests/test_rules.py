"""Tests for rule-based categorization, sentiment and question detection."""

import unittest

from motopulse import rules
from motopulse.models import Post


def make_post(**overrides):
    data = dict(
        id="abc",
        title="Battery issue?",
        body="my battery is terrible",
        channel="motorola",
        upvotes=10,
        comments=2,
        permalink="/r/motorola/comments/abc/battery_issue/",
        created_utc=1760000000,
    )
    data.update(overrides)
    return Post(**data)


class TestCategorize(unittest.TestCase):
    """Test ordered first-match category rules."""

    def test_known_categories(self):
        test_cases = [
            ("Moto G Power review after a week", "Moto G Series"),
            ("Razr 2024 hinge creaks", "Razr"),
            ("Edge 50 Pro thoughts", "Moto Edge Series"),
            ("Camera samples from the new phone", "Camera"),
            ("Android 15 update finally arrived", "Software/Updates"),
            ("Moto Buds audio quality", "Audio"),
            ("Thoughts on this phone", "General"),
        ]
        for text, expected in test_cases:
            with self.subTest(text=text):
                self.assertEqual(rules.categorize(text), expected)

    def test_first_matching_rule_wins(self):
        # Matches both the battery rule and the Moto G rule; battery comes first
        self.assertEqual(rules.categorize("Moto G battery drains overnight"), "Battery/Charging")

    def test_accessories_reachable(self):
        test_cases = [
            ("Best screen protector for this phone?", "Accessories"),
            ("Looking for a slim case", "Accessories"),
            ("Screen is too dim outdoors", "Display"),
            ("Fast charger recommendations", "Battery/Charging"),
        ]
        for text, expected in test_cases:
            with self.subTest(text=text):
                self.assertEqual(rules.categorize(text), expected)

    def test_custom_rule_table(self):
        table = [(r"\bfoo\b", "Foo"), (r"\bbar\b", "Bar")]
        self.assertEqual(rules.categorize("bar and foo", table), "Foo")
        self.assertEqual(rules.categorize("just bar", table), "Bar")
        self.assertEqual(rules.categorize("nothing here", table), "General")

    def test_case_insensitive(self):
        self.assertEqual(rules.categorize("MY BATTERY"), "Battery/Charging")


class TestSentiment(unittest.TestCase):
    """Test keyword-count sentiment."""

    def test_positive(self):
        label, confidence, _ = rules.analyze_sentiment("Love it", "great camera and excellent screen")
        self.assertEqual(label, "positive")
        self.assertGreaterEqual(confidence, rules.CONFIDENCE_FLOOR)

    def test_negative(self):
        label, _, _ = rules.analyze_sentiment("Worst phone", "broken after a week, awful support")
        self.assertEqual(label, "negative")

    def test_single_hit_is_neutral(self):
        # A label needs a lead of more than one hit
        label, _, _ = rules.analyze_sentiment("Terrible", "")
        self.assertEqual(label, "neutral")
        label, _, _ = rules.analyze_sentiment("Great but broken", "")
        self.assertEqual(label, "neutral")

    def test_no_keywords(self):
        label, confidence, reasoning = rules.analyze_sentiment("Just got the phone", "")
        self.assertEqual(label, "neutral")
        self.assertEqual(confidence, rules.CONFIDENCE_FLOOR)
        self.assertIn("0 positive / 0 negative", reasoning)

    def test_confidence_clamped(self):
        _, confidence, _ = rules.analyze_sentiment("terrible awful", "horrible")
        self.assertEqual(confidence, rules.CONFIDENCE_CEILING)

        long_body = " ".join(["word"] * 400) + " great"
        _, confidence, _ = rules.analyze_sentiment("Long post", long_body)
        self.assertGreaterEqual(confidence, rules.CONFIDENCE_FLOOR)
        self.assertLess(confidence, rules.CONFIDENCE_CEILING)

    def test_pure_function(self):
        args = ("Great phone", "love the screen, but battery issue")
        self.assertEqual(rules.analyze_sentiment(*args), rules.analyze_sentiment(*args))

    def test_custom_keywords(self):
        keywords = {"positive": ["yay"], "negative": ["boo"]}
        label, _, _ = rules.analyze_sentiment("yay yay", "", keywords)
        self.assertEqual(label, "positive")
        label, _, _ = rules.analyze_sentiment("great great great", "", keywords)
        self.assertEqual(label, "neutral")

    def test_labels_always_valid(self):
        for title in ["", "?", "great", "terrible terrible", "a b c d e f g"]:
            with self.subTest(title=title):
                label, confidence, _ = rules.analyze_sentiment(title, "")
                self.assertIn(label, rules.SENTIMENTS)
                self.assertTrue(0 <= confidence <= 100)


class TestQuestionDetection(unittest.TestCase):

    def test_question_mark_in_title(self):
        self.assertTrue(rules.detect_question("Worth it?", ""))

    def test_help_keywords(self):
        self.assertTrue(rules.detect_question("Anyone know how to unlock the bootloader", ""))
        self.assertTrue(rules.detect_question("Screen", "need help with the screen"))

    def test_question_word(self):
        self.assertTrue(rules.detect_question("Quick question", ""))

    def test_not_a_question(self):
        self.assertFalse(rules.detect_question("Love this phone", "Great screen"))


class TestClassifyPost(unittest.TestCase):

    def test_end_to_end_example(self):
        review = rules.classify_post(make_post())
        self.assertTrue(review.is_question)
        self.assertEqual(review.sentiment, "negative")
        self.assertEqual(review.category, "Battery/Charging")
        self.assertEqual(review.upvotes, 10)
        self.assertEqual(review.comments, 2)
        self.assertEqual(review.summary, "my battery is terrible")

        api = review.to_api()
        self.assertEqual(api["id"], "abc")
        self.assertEqual(api["url"], "https://reddit.com/r/motorola/comments/abc/battery_issue/")
        self.assertTrue(api["createdAt"].startswith("2025-10-09T"))
        self.assertTrue(api["isQuestion"])
        self.assertEqual(api["channel"], "motorola")

    def test_summary_truncated(self):
        review = rules.classify_post(make_post(body="x" * 250))
        self.assertEqual(review.summary, "x" * 200 + "...")

    def test_empty_body_summary(self):
        review = rules.classify_post(make_post(body=""))
        self.assertEqual(review.summary, "No description available")

    def test_classify_posts_keeps_order(self):
        posts = [make_post(id=str(i)) for i in range(5)]
        self.assertEqual([r.id for r in rules.classify_posts(posts)], ["0", "1", "2", "3", "4"])


if __name__ == '__main__':
    unittest.main()
