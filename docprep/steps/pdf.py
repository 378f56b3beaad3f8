"""
PDF extraction using PyMuPDF.

This step combines the native text layer with rendered page images:

1. Text from every page is cleaned, concatenated and kept if it passes the
   quality filter.
2. A bounded subset of pages is rendered: all pages for short documents,
   otherwise the first two and the last two.
3. Rendered pages are optimized (and OCRed when the text layer was not
   usable) concurrently on a thread pool.
4. Results are merged by page index, never by completion order.

Any page failure aborts the whole step.
"""

import asyncio
import contextvars
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import fitz  # PyMuPDF
from PIL import Image

from docprep.config import Config
from docprep.models import Attachment, Document, Strategy
from docprep.processor.images import flatten_image, optimize_image
from docprep.processor.ocr import run_ocr
from docprep.processor.pipeline import ProcessingStep
from docprep.processor.preprocessor import clean_text, format_extracted_data, format_ocr_data
from docprep.processor.quality import is_meaningful_text
from docprep.utils.errors import ConversionError, ExtractionError
from docprep.utils.logging import get_logger, log_performance

logger = get_logger(__name__)

RENDER_SCALE = 1.5
HEAD_PAGES = 2
TAIL_PAGES = 2


def select_pages_to_process(total_pages: int) -> List[int]:
    """
    Choose which zero-based pages to render.

    Documents of up to four pages are rendered in full; longer documents
    only have their first two and last two pages rendered.
    """
    if total_pages <= HEAD_PAGES + TAIL_PAGES:
        return list(range(total_pages))
    return list(range(HEAD_PAGES)) + list(range(total_pages - TAIL_PAGES, total_pages))


def pixmap_to_image(pixmap: "fitz.Pixmap") -> Image.Image:
    """Convert an RGB(A) pixmap to an opaque PIL image, compositing alpha onto white."""
    mode = "RGBA" if pixmap.alpha else "RGB"
    image = Image.frombytes(
        mode, (pixmap.width, pixmap.height), pixmap.samples, "raw", mode, pixmap.stride
    )
    if pixmap.alpha:
        return flatten_image(image)
    return image


@dataclass
class RenderedPage:
    """A rendered page awaiting optimization."""

    index: int
    image: Image.Image


@dataclass
class PageResult:
    """Output of one page task."""

    index: int
    attachment: Attachment
    ocr_text: Optional[str] = None


class PDFExtractor(ProcessingStep):
    """Extract text and page images from PDF files."""

    name = "pdf_processor"
    applicable_strategies = frozenset({Strategy.PDF})

    @log_performance
    async def process(self, document: Document, config: Config) -> None:
        path = Path(document.file_path)
        logger.debug(f"Starting PDF processing for {path.name}")

        embedded_text, pages = await asyncio.to_thread(self.read_document, path)

        extracted_part = None
        if embedded_text is not None:
            cleaned = clean_text(embedded_text)
            if is_meaningful_text(cleaned, config.ocr_quality_threshold):
                logger.debug("Found meaningful embedded text")
                extracted_part = format_extracted_data(cleaned)
            else:
                logger.debug("Embedded text not meaningful enough, falling back to OCR")

        results = await self.process_pages(pages, path.stem, config, extracted_part is not None)

        if extracted_part is not None:
            document.prompt_parts.append(extracted_part)
        document.prompt_parts.extend(r.ocr_text for r in results if r.ocr_text is not None)
        document.attachments.extend(r.attachment for r in results)

        logger.debug(
            f"PDF merged: {len(document.prompt_parts)} prompt parts, "
            f"{len(document.attachments)} attachments"
        )

    @log_performance
    def read_document(self, path: Path) -> Tuple[Optional[str], List[RenderedPage]]:
        """
        Read the text layer and render the selected pages.

        Returns:
            Tuple of (embedded text or None, rendered pages in index order)

        Raises:
            ExtractionError: If the PDF cannot be opened
            ConversionError: If a selected page cannot be rendered
        """
        try:
            doc = fitz.open(path)
        except fitz.FileDataError as e:
            raise ExtractionError(f"PDF file is corrupted: {e}", {"file_path": str(path)}) from e
        except Exception as e:
            raise ExtractionError(f"cannot open PDF: {e}", {"file_path": str(path)}) from e

        with doc:
            if doc.needs_pass:
                raise ExtractionError("PDF is password protected", {"file_path": str(path)})

            text = self._extract_text(doc)
            logger.debug(f"Text extraction completed: {text is not None}")

            indices = select_pages_to_process(doc.page_count)
            logger.debug(f"Rendering pages {indices} of {doc.page_count}")
            pages = [RenderedPage(index, self._render_page(doc, index)) for index in indices]

        return text, pages

    def _extract_text(self, doc: "fitz.Document") -> Optional[str]:
        parts = []
        for page_number in range(doc.page_count):
            try:
                page_text = doc.load_page(page_number).get_text()
            except Exception as e:
                logger.warning(f"Failed to extract text from page {page_number + 1}: {e}")
                continue

            cleaned = clean_text(page_text)
            if cleaned:
                parts.append(cleaned)

        text = "\n".join(parts).strip()
        return text or None

    def _render_page(self, doc: "fitz.Document", index: int) -> Image.Image:
        try:
            page = doc.load_page(index)
            pixmap = page.get_pixmap(
                matrix=fitz.Matrix(RENDER_SCALE, RENDER_SCALE),
                colorspace=fitz.csRGB,
                alpha=False,
            )
            return pixmap_to_image(pixmap)
        except Exception as e:
            raise ConversionError(f"cannot render page {index + 1}: {e}") from e

    async def process_pages(
        self,
        pages: List[RenderedPage],
        stem: str,
        config: Config,
        has_extracted_text: bool,
    ) -> List[PageResult]:
        """
        Optimize (and OCR) every rendered page concurrently.

        Results come back in the order of `pages`. The first failing page
        aborts the rest: pending tasks are cancelled, running tasks skip OCR,
        and the pool is joined before this returns or raises.
        """
        if not pages:
            return []

        loop = asyncio.get_running_loop()
        cancelled = threading.Event()
        executor = ThreadPoolExecutor(
            max_workers=min(config.threads, len(pages)),
            thread_name_prefix="docprep-page",
        )
        try:
            # Each task runs in its own copy of the context so page logs keep document fields
            futures = [
                loop.run_in_executor(
                    executor,
                    contextvars.copy_context().run,
                    self._process_page,
                    page,
                    stem,
                    config,
                    has_extracted_text,
                    cancelled,
                )
                for page in pages
            ]
            results = await asyncio.gather(*futures)
        except BaseException:
            cancelled.set()
            raise
        finally:
            # Join before returning so no page task outlives the step. On timeout
            # or failure this waits for OCR calls already running, so a step can
            # overrun timeout_seconds by one OCR call; temp cleanup runs after.
            executor.shutdown(wait=True, cancel_futures=True)

        return list(results)

    def _process_page(
        self,
        page: RenderedPage,
        stem: str,
        config: Config,
        has_extracted_text: bool,
        cancelled: threading.Event,
    ) -> Optional[PageResult]:
        if cancelled.is_set():
            return None

        page_number = page.index + 1
        optimized, data = optimize_image(page.image, config.max_image_size_mb)
        result = PageResult(page.index, Attachment(page=page_number, data=data))

        if has_extracted_text or cancelled.is_set():
            return result

        text = clean_text(run_ocr(optimized, config, f"{stem}_page_{page_number}.png"))
        if is_meaningful_text(text, config.ocr_quality_threshold):
            result.ocr_text = format_ocr_data(text, page_number)
        else:
            logger.debug(f"OCR text for page {page_number} not meaningful enough")
        return result
