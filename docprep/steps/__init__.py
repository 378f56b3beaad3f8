"""
Extraction steps, one per strategy.

STEP_REGISTRY fixes the registration order used by create_pipeline.
"""

from docprep.steps.image import ImageExtractor
from docprep.steps.office import OfficeExtractor
from docprep.steps.pdf import PDFExtractor
from docprep.steps.spreadsheet import SpreadsheetExtractor
from docprep.steps.text import TextExtractor

STEP_REGISTRY = (
    TextExtractor,
    SpreadsheetExtractor,
    PDFExtractor,
    OfficeExtractor,
    ImageExtractor,
)

__all__ = [
    "STEP_REGISTRY",
    "ImageExtractor",
    "OfficeExtractor",
    "PDFExtractor",
    "SpreadsheetExtractor",
    "TextExtractor",
]
