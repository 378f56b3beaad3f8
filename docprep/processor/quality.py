"""
Heuristic quality filter for extracted and OCR text.

Decides whether a piece of text is meaningful enough to hand to a language
model. Every check is an independent rejection rule; the first one that fires
is logged as the reason.
"""

import re

from docprep.utils.logging import get_logger

logger = get_logger(__name__)

MIN_LENGTH = 10
MIN_VALID_CHAR_RATIO = 0.8
MAX_SPECIAL_CHAR_RATIO = 0.15
REPEAT_WINDOW = 5
REPEAT_ALLOWED = frozenset("xX0")
MIN_WORDS = 3
LONG_WORD_LENGTH = 20
MAX_LONG_WORD_RATIO = 0.08
MIN_AVG_WORD_LENGTH = 2.0
MAX_AVG_WORD_LENGTH = 15.0
MAX_SINGLE_CHAR_RATIO = 0.3
MIN_WORD_LIKE_RATIO = 0.4

PUNCTUATION = frozenset(".,;:'\"()-")
WORD_LIKE_RE = re.compile(r"[A-Za-z]+")


def _is_valid_char(char: str) -> bool:
    return (char.isascii() and char.isalnum()) or char.isspace() or char in PUNCTUATION


def _has_repeated_run(text: str) -> bool:
    """Check for REPEAT_WINDOW identical characters in a row, except x, X and 0."""
    run_char = ""
    run_length = 0
    for char in text:
        if char == run_char:
            run_length += 1
        else:
            run_char = char
            run_length = 1
        if run_length >= REPEAT_WINDOW and char not in REPEAT_ALLOWED:
            return True
    return False


def is_mostly_garbage(text: str) -> bool:
    """
    Return True if the text looks like noise rather than language.

    Args:
        text: Cleaned extracted or OCR text

    Returns:
        True when any rejection rule fires
    """
    text = text.strip()
    if not text:
        logger.debug("quality filter: rejected - empty text")
        return True

    length = len(text)
    if length < MIN_LENGTH:
        logger.debug(f"quality filter: rejected - too short (length: {length})")
        return True

    valid_count = sum(1 for char in text if _is_valid_char(char))
    valid_ratio = valid_count / length
    if valid_ratio < MIN_VALID_CHAR_RATIO:
        logger.debug(f"quality filter: rejected - low valid char ratio ({valid_ratio:.1%})")
        return True

    if _has_repeated_run(text):
        logger.debug("quality filter: rejected - repeated characters")
        return True

    special_ratio = (length - valid_count) / length
    if special_ratio > MAX_SPECIAL_CHAR_RATIO:
        logger.debug(f"quality filter: rejected - too many special chars ({special_ratio:.1%})")
        return True

    words = text.split()
    word_count = len(words)
    if word_count < MIN_WORDS:
        logger.debug(f"quality filter: rejected - too few words (count: {word_count})")
        return True

    long_ratio = sum(1 for word in words if len(word) > LONG_WORD_LENGTH) / word_count
    if long_ratio > MAX_LONG_WORD_RATIO:
        logger.debug(f"quality filter: rejected - too many long words ({long_ratio:.1%})")
        return True

    avg_length = sum(len(word) for word in words) / word_count
    if avg_length < MIN_AVG_WORD_LENGTH or avg_length > MAX_AVG_WORD_LENGTH:
        logger.debug(f"quality filter: rejected - unusual avg word length ({avg_length:.1f})")
        return True

    single_ratio = sum(1 for word in words if len(word) == 1) / word_count
    if single_ratio > MAX_SINGLE_CHAR_RATIO:
        logger.debug(f"quality filter: rejected - too many single-char words ({single_ratio:.1%})")
        return True

    word_like = sum(1 for word in words if len(word) > 1 and WORD_LIKE_RE.fullmatch(word))
    word_like_ratio = word_like / word_count
    if word_like_ratio < MIN_WORD_LIKE_RATIO:
        logger.debug(f"quality filter: rejected - too few word-like tokens ({word_like_ratio:.1%})")
        return True

    logger.debug("quality filter: accepted - passed all quality checks")
    return False


def is_meaningful_text(text: str, threshold: float = 0.5) -> bool:
    """
    Accept text that passes the quality filter.

    Args:
        text: Cleaned extracted or OCR text
        threshold: Configured OCR quality threshold; accepted but not consulted

    Returns:
        True when the text is worth keeping
    """
    return not is_mostly_garbage(text)
