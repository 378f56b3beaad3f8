"""
Text normalization for extracted and OCR text.

The cleanup is deterministic and idempotent: running it on its own output
changes nothing. Patterns are compiled once at import and shared read-only by
every caller, including PDF page workers running in threads.
"""

import re

# Runs of OCR noise from vertical strokes: |, I, i, l
REPEATED_CHARS_RE = re.compile(r"[|Iil]{3,}")
REPEATED_DOTS_RE = re.compile(r"[.:]{3,}")
REPEATED_DASHES_RE = re.compile(r"[_-]{2,}")
WHITESPACE_RE = re.compile(r"[ \t]+")
MULTIPLE_NEWLINES_RE = re.compile(r"\n\s*\n")

EXTRACTED_DATA_TAG = "<EXTRACTED_DATA>{text}</EXTRACTED_DATA>"
OCR_TAG = "<OCR PAGE={page}>{text}</OCR>"


def clean_text(text: str) -> str:
    """
    Clean and normalize text content.

    Steps:
        1. Trim and normalize CRLF/CR line endings to LF
        2. Drop noise runs of |, I, i, l (3 or more)
        3. Collapse runs of . and : to "..." and runs of _ and - to "--"
        4. Collapse horizontal whitespace to a single space
        5. Trim every line and drop lines of one character or less
        6. Collapse blank-line runs, final trim

    Artifact removal runs before line filtering so that a line emptied by it
    is dropped in the same pass.

    Args:
        text: Raw text

    Returns:
        Cleaned text, possibly empty
    """
    text = text.strip()
    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n")

    text = REPEATED_CHARS_RE.sub("", text)
    text = REPEATED_DOTS_RE.sub("...", text)
    text = REPEATED_DASHES_RE.sub("--", text)
    text = WHITESPACE_RE.sub(" ", text)

    lines = (line.strip() for line in text.split("\n"))
    text = "\n".join(line for line in lines if len(line) > 1)

    text = MULTIPLE_NEWLINES_RE.sub("\n\n", text)

    return text.strip()


def format_extracted_data(text: str) -> str:
    """Wrap extracted text in the extracted-data tag."""
    return EXTRACTED_DATA_TAG.format(text=text)


def format_ocr_data(text: str, page: int) -> str:
    """Wrap OCR text for a 1-indexed page in the OCR tag."""
    return OCR_TAG.format(page=page, text=text)
