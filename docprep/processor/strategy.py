"""
Map file extensions to extraction strategies.
"""

from typing import Dict, FrozenSet

from docprep.models import Strategy

_EXTENSION_STRATEGIES: Dict[Strategy, FrozenSet[str]] = {
    Strategy.TEXT: frozenset({"txt", "html", "htm"}),
    Strategy.SPREADSHEET: frozenset({"csv", "xls", "xlsx", "xlsm", "ods"}),
    Strategy.PDF: frozenset({"pdf"}),
    Strategy.OFFICE: frozenset(
        {"doc", "docx", "docm", "odt", "rtf", "ppt", "pptx", "pptm", "odp"}
    ),
    Strategy.IMAGE: frozenset(
        {"bmp", "gif", "jpg", "jpeg", "png", "tiff", "tif", "webp", "heic", "heif"}
    ),
}

_STRATEGY_BY_EXTENSION: Dict[str, Strategy] = {
    extension: strategy
    for strategy, extensions in _EXTENSION_STRATEGIES.items()
    for extension in extensions
}

SUPPORTED_EXTENSIONS: FrozenSet[str] = frozenset(_STRATEGY_BY_EXTENSION)


def resolve_strategy(extension: str) -> Strategy:
    """
    Resolve the extraction strategy for a file extension.

    Matching is case-insensitive and a leading dot is ignored. Unknown
    extensions fall back to the text strategy.

    Args:
        extension: File extension, e.g. "PDF" or ".docx"

    Returns:
        The strategy for the extension
    """
    return _STRATEGY_BY_EXTENSION.get(extension.lower().lstrip("."), Strategy.TEXT)
