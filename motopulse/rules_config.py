"""
Configurable rule tables for review classification.
Allows categories and keyword lists to be loaded from JSON files without code changes.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"

# Ordered: the first matching pattern decides the category.
DEFAULT_CATEGORY_RULES: List[Tuple[str, str]] = [
    (r"\bbatter(y|ies)\b|\bcharg(e|er|ers|ing)\b|\bturbopower\b|\bdrain(s|ing)?\b", "Battery/Charging"),
    (r"\bcamera(s)?\b|\bphoto(s)?\b|\bselfie(s)?\b|\blens\b|\bnight vision\b", "Camera"),
    (r"\bscreen\b(?!\s?protector)|\bdisplay\b|\bp?oled\b|\bamoled\b|\brefresh rate\b|\b\d{2,3}\s?hz\b", "Display"),
    (r"\bupdate(s|d)?\b|\bandroid 1\d\b|\bsecurity patch(es)?\b|\bbloatware\b|\bsoftware\b|\bbug(s|gy)?\b", "Software/Updates"),
    (r"\blag(s|gy|ging)?\b|\bslow\b|\bperformance\b|\bsnapdragon\b|\bdimensity\b|\bgaming\b|\boverheat(s|ing)?\b", "Performance"),
    (r"\bmoto\s?g\b|\bmoto g\d|\bg\s?(stylus|power|play)\b", "Moto G Series"),
    (r"\bedge\b", "Moto Edge Series"),
    (r"\brazr\b", "Razr"),
    (r"\bbuds\b|\bheadphone(s)?\b|\baudio\b|\bspeaker(s)?\b|\bearbud(s)?\b", "Audio"),
    (r"\bcase(s)?\b|\bscreen protector\b|\baccessor(y|ies)\b|\bstylus\b", "Accessories"),
]

DEFAULT_SENTIMENT_KEYWORDS: Dict[str, List[str]] = {
    "positive": [
        "great", "amazing", "excellent", "love", "perfect", "awesome", "fantastic",
        "good", "best", "impressed", "recommend", "solid", "happy", "satisfied",
    ],
    "negative": [
        "terrible", "awful", "hate", "worst", "bad", "horrible", "disappointed",
        "broken", "issue", "problem", "failed", "useless", "garbage", "overheating",
    ],
}

DEFAULT_QUESTION_KEYWORDS: List[str] = [
    "help", "how to", "why", "issue", "problem", "troubleshoot", "anyone know",
]

DEFAULT_RELEVANCE_RULES: Dict[str, Any] = {
    "terms": ["motorola", "moto g", "moto edge", "moto razr", "motog", "lenovo"],
    "pattern": r"\b(moto\s?(g|e|x|z)\s?\d{0,3}|razr\s?(\+|plus|ultra|\d{2,4})?|edge\s?(\+|plus|\d{2,4}))\b",
}


def load_rules_from_file(file_path: str) -> Optional[Any]:
    """Load rules from a JSON file. Returns None if file doesn't exist or is invalid."""
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError, IOError):
        return None


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    override = os.environ.get("MOTOPULSE_CONFIG_DIR")
    if override:
        return Path(override)
    # Look for config directory relative to the package directory
    return Path(__file__).parent.parent / "config"


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _is_valid_pattern(pattern: str) -> bool:
    try:
        re.compile(pattern)
    except re.error as e:
        logger.warning("Invalid regex %r: %s", pattern, e)
        return False
    return True


def load_category_rules() -> List[Tuple[str, str]]:
    """Load ordered (pattern, label) category rules from config file or use defaults."""
    config = load_rules_from_file(str(get_config_dir() / "categories.json"))
    if isinstance(config, list):
        validated: List[Tuple[str, str]] = []
        for entry in config:
            if (isinstance(entry, list) and len(entry) == 2 and _is_str_list(entry)
                    and _is_valid_pattern(entry[0])):
                validated.append((entry[0], entry[1]))
            else:
                logger.warning("Invalid category rule %r, skipping", entry)
        if validated:
            return validated

    return list(DEFAULT_CATEGORY_RULES)


def load_sentiment_keywords() -> Dict[str, List[str]]:
    """Load positive/negative keyword lists from config file or use defaults."""
    config = load_rules_from_file(str(get_config_dir() / "sentiment.json"))
    if isinstance(config, dict):
        validated = {}
        for key in ("positive", "negative"):
            value = config.get(key)
            if _is_str_list(value) and value:
                validated[key] = [w.lower() for w in value]
            else:
                logger.warning("Invalid sentiment keywords for '%s', using default", key)
                validated[key] = DEFAULT_SENTIMENT_KEYWORDS[key]
        return validated

    return {k: list(v) for k, v in DEFAULT_SENTIMENT_KEYWORDS.items()}


def load_question_keywords() -> List[str]:
    """Load help-seeking keywords from config file or use defaults."""
    config = load_rules_from_file(str(get_config_dir() / "questions.json"))
    if _is_str_list(config) and config:
        return [w.lower() for w in config]
    if config is not None:
        logger.warning("Invalid question keywords config, using default")

    return list(DEFAULT_QUESTION_KEYWORDS)


def load_relevance_rules() -> Dict[str, Any]:
    """Load brand terms and the product-line pattern from config file or use defaults."""
    config = load_rules_from_file(str(get_config_dir() / "relevance.json"))
    if isinstance(config, dict):
        terms = config.get("terms")
        pattern = config.get("pattern")
        return {
            "terms": [t.lower() for t in terms] if _is_str_list(terms) else DEFAULT_RELEVANCE_RULES["terms"],
            "pattern": (pattern if isinstance(pattern, str) and _is_valid_pattern(pattern)
                        else DEFAULT_RELEVANCE_RULES["pattern"]),
        }

    return dict(DEFAULT_RELEVANCE_RULES)
