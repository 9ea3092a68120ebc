"""
Word parsing
============
Turns plain text into the word stream that documents and queries are
indexed by. The same rules apply to both, so a query word matches the
words produced from a page:
- Unicode is folded to ASCII (eg. "Café" -> "cafe")
- characters other than letters and whitespace are removed outright
  (eg. "don't" -> "dont", "e-mail" -> "email", "R2D2" -> "rd")
- text is lower-cased and split on whitespace
"""
import re
from typing import List

import unidecode

NON_WORD_PATTERN = re.compile(r"[^A-Za-z\s]+")
WHITESPACE_PATTERN = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Fold, strip and lower-case text without splitting it."""
    if not text:
        return ""

    text = unidecode.unidecode(text)
    text = NON_WORD_PATTERN.sub("", text)
    return text.lower()


def parse_words(text: str) -> List[str]:
    """
    Split text into cleaned words, in order of appearance.

    Args:
        text: Plain text (markup already removed)

    Returns:
        List of non-empty words
    """
    cleaned = clean_text(text).strip()
    if not cleaned:
        return []
    return WHITESPACE_PATTERN.split(cleaned)
