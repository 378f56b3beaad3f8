"""
Raster image extraction: one optimized attachment plus OCR text when the
recognized text passes the quality filter.
"""

import asyncio
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from docprep.config import Config
from docprep.models import Attachment, Document, Strategy
from docprep.processor.images import optimize_image
from docprep.processor.ocr import run_ocr
from docprep.processor.pipeline import ProcessingStep
from docprep.processor.preprocessor import clean_text, format_ocr_data
from docprep.processor.quality import is_meaningful_text
from docprep.utils.errors import ImageProcessingError
from docprep.utils.logging import get_logger, log_performance

logger = get_logger(__name__)


def load_image(path: Path) -> Image.Image:
    """
    Load the first frame of a raster image fully into memory.

    Raises:
        ImageProcessingError: If the file is missing or not a readable image
    """
    try:
        with Image.open(path) as image:
            image.seek(0)
            image.load()
            return image.copy()
    except (OSError, UnidentifiedImageError, ValueError) as e:
        raise ImageProcessingError(str(e), {"file_path": str(path)}) from e


class ImageExtractor(ProcessingStep):
    """Attach an optimized copy of an image and OCR it."""

    name = "image_processor"
    applicable_strategies = frozenset({Strategy.IMAGE})

    @log_performance
    async def process(self, document: Document, config: Config) -> None:
        path = Path(document.file_path)
        data, ocr_text = await asyncio.to_thread(self._process_image, path, config)

        document.attachments.append(Attachment(page=1, data=data))
        if ocr_text is not None:
            document.prompt_parts.append(format_ocr_data(ocr_text, 1))

    def _process_image(self, path: Path, config: Config) -> Tuple[bytes, Optional[str]]:
        image = load_image(path)
        optimized, data = optimize_image(image, config.max_image_size_mb)

        text = clean_text(run_ocr(optimized, config, f"{path.stem}_page_1.png"))
        logger.debug(f"OCR text length: {len(text)}, word count: {len(text.split())}")

        if is_meaningful_text(text, config.ocr_quality_threshold):
            logger.debug("OCR text is meaningful, adding to prompt parts")
            return data, text

        logger.debug("OCR text not meaningful enough")
        return data, None
