"""
OCR via Tesseract with scoped temporary files.

Every call owns a private temporary directory that is removed on every exit
path. When temporaries are kept, the image is moved out of that directory
before the directory is cleaned up.
"""

import shutil
import tempfile
from pathlib import Path

import pytesseract
from PIL import Image

from docprep.config import Config
from docprep.utils.errors import FileIOError, OCRError
from docprep.utils.logging import get_logger

logger = get_logger(__name__)


def run_ocr(image: Image.Image, config: Config, name: str) -> str:
    """
    Recognize text in an image.

    Args:
        image: Optimized image to recognize
        config: Processing configuration (language, temp handling)
        name: File name for the temporary image, e.g. "report_page_3.png"

    Returns:
        Raw recognized text

    Raises:
        OCRError: If the image cannot be written or Tesseract fails
        FileIOError: If the temp directory cannot be created or a kept
            temporary cannot be moved
    """
    try:
        scope = tempfile.TemporaryDirectory(prefix="docprep-ocr-")
    except OSError as e:
        raise FileIOError(e) from e

    with scope as temp_dir:
        temp_path = Path(temp_dir) / name

        try:
            image.save(temp_path, format="PNG")
        except (OSError, ValueError) as e:
            raise OCRError(f"cannot write OCR input: {e}", {"file": name}) from e

        try:
            text = pytesseract.image_to_string(str(temp_path), lang=config.ocr_language)
        except pytesseract.TesseractNotFoundError as e:
            raise OCRError("tesseract is not installed or not on PATH") from e
        except (pytesseract.TesseractError, RuntimeError, OSError) as e:
            raise OCRError(str(e), {"file": name, "language": config.ocr_language}) from e

        logger.debug(f"OCR produced {len(text.strip())} characters for {name}")

        if config.keep_temps:
            kept_path = Path(config.temp_dir) / name
            try:
                Path(config.temp_dir).mkdir(parents=True, exist_ok=True)
                shutil.move(str(temp_path), str(kept_path))
            except OSError as e:
                raise FileIOError(e, str(kept_path)) from e
            logger.debug(f"Kept OCR input at {kept_path}")

    return text
