"""
Office document extraction.

OOXML and ODF files are zip containers; text runs are read straight from
the known XML members without an office suite. RTF is handled with a
line-based strip of control words. Anything without a structured reader,
or where the reader finds nothing, falls back to a raw text read.
"""

import asyncio
import zipfile
from pathlib import Path
from typing import Iterable, Optional
from xml.etree import ElementTree as ET

from docprep.config import Config
from docprep.models import Document, Strategy
from docprep.processor.pipeline import ProcessingStep
from docprep.processor.preprocessor import clean_text, format_extracted_data
from docprep.utils.errors import ExtractionError, InvalidFormatError
from docprep.utils.logging import get_logger, log_performance

logger = get_logger(__name__)

WORD_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
DRAWING_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
ODF_TEXT_NS = "urn:oasis:names:tc:opendocument:xmlns:text:1.0"

WORD_TEXT_TAG = f"{{{WORD_NS}}}t"
DRAWING_TEXT_TAG = f"{{{DRAWING_NS}}}t"
ODF_TEXT_TAGS = frozenset({f"{{{ODF_TEXT_NS}}}p", f"{{{ODF_TEXT_NS}}}h"})

WORD_DOCUMENT_PART = "word/document.xml"
SLIDE_PREFIX = "ppt/slides/slide"
ODF_CONTENT_PART = "content.xml"


def _run_text(root: ET.Element, tags: Iterable[str]) -> str:
    """Concatenate the text of every element with one of the tags, space-separated."""
    tags = frozenset(tags)
    parts = []
    for element in root.iter():
        if element.tag in tags:
            text = "".join(element.itertext())
            if text:
                parts.append(text)
                parts.append(" ")
    return "".join(parts)


def _parse_member(archive: zipfile.ZipFile, name: str) -> ET.Element:
    try:
        return ET.fromstring(archive.read(name))
    except ET.ParseError as e:
        raise ExtractionError(f"malformed XML in {name}: {e}") from e


def _cleaned_or_none(text: str) -> Optional[str]:
    text = clean_text(text)
    return text or None


class OfficeExtractor(ProcessingStep):
    """Extract text from word-processing, presentation and RTF documents."""

    name = "office_processor"
    applicable_strategies = frozenset({Strategy.OFFICE})

    @log_performance
    async def process(self, document: Document, config: Config) -> None:
        path = Path(document.file_path)
        text = await asyncio.to_thread(self.extract_text, path)

        if text is None:
            logger.info(f"No structured text in {path.name}, reading as plain text")
            text = await asyncio.to_thread(self._read_plain_text, path)

        document.prompt_parts.append(format_extracted_data(text))

    def extract_text(self, path: Path) -> Optional[str]:
        """
        Extract cleaned text with the reader for the file's format.

        Returns:
            Cleaned text, or None if the format has no reader or the reader
            found nothing

        Raises:
            ExtractionError: If a container or its XML is corrupt
        """
        extension = path.suffix.lower().lstrip(".")
        if not extension:
            raise InvalidFormatError("No file extension")

        if extension in ("docx", "docm"):
            return self._extract_docx(path)
        if extension in ("pptx", "pptm"):
            return self._extract_pptx(path)
        if extension in ("odt", "odp"):
            return self._extract_odf(path)
        if extension == "rtf":
            return self._extract_rtf(path)
        return None

    def _open_archive(self, path: Path) -> zipfile.ZipFile:
        try:
            return zipfile.ZipFile(path)
        except (OSError, zipfile.BadZipFile) as e:
            raise ExtractionError(str(e), {"file_path": str(path)}) from e

    def _extract_docx(self, path: Path) -> Optional[str]:
        with self._open_archive(path) as archive:
            if WORD_DOCUMENT_PART not in archive.namelist():
                return None
            root = _parse_member(archive, WORD_DOCUMENT_PART)
        return _cleaned_or_none(_run_text(root, [WORD_TEXT_TAG]))

    def _extract_pptx(self, path: Path) -> Optional[str]:
        slides = []
        with self._open_archive(path) as archive:
            for info in archive.infolist():
                name = info.filename
                if name.startswith(SLIDE_PREFIX) and name.endswith(".xml"):
                    content = _run_text(_parse_member(archive, name), [DRAWING_TEXT_TAG])
                    if content:
                        slides.append(content)
        logger.debug(f"Read {len(slides)} slides with text from {path.name}")
        return _cleaned_or_none("\n".join(slides))

    def _extract_odf(self, path: Path) -> Optional[str]:
        with self._open_archive(path) as archive:
            if ODF_CONTENT_PART not in archive.namelist():
                return None
            root = _parse_member(archive, ODF_CONTENT_PART)
        paragraphs = []
        for element in root.iter():
            if element.tag in ODF_TEXT_TAGS:
                paragraphs.append("".join(element.itertext()))
        return _cleaned_or_none("\n".join(paragraphs))

    def _extract_rtf(self, path: Path) -> Optional[str]:
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ExtractionError(str(e), {"file_path": str(path)}) from e

        lines = content.replace("\\par", "\n").splitlines()
        kept = [line for line in lines if not line.startswith(("{", "}", "\\"))]
        return _cleaned_or_none("\n".join(kept))

    def _read_plain_text(self, path: Path) -> str:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ExtractionError(
                "no structured text and not readable as plain text",
                {"file_path": str(path), "error": str(e)},
            ) from e

        text = clean_text(content)
        if not text:
            raise ExtractionError("document contains no text", {"file_path": str(path)})
        return text
