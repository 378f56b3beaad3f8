"""
Shared fixtures for docprep tests.

Fixture documents are generated on the fly; Tesseract is never required
because pytesseract.image_to_string is replaced by a recorder.
"""

import logging
import threading
import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Optional

import fitz  # PyMuPDF
import pytest
import pytesseract
from PIL import Image

from docprep.config import Config

OCR_TEXT = "The quarterly report shows steady growth across all regions this year."

WORD_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
DRAWING_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
ODF_OFFICE_NS = "urn:oasis:names:tc:opendocument:xmlns:office:1.0"
ODF_TEXT_NS = "urn:oasis:names:tc:opendocument:xmlns:text:1.0"


class FakeTesseract:
    """Stand-in for pytesseract.image_to_string that records every call."""

    def __init__(self, text: str = OCR_TEXT) -> None:
        self.text = text
        self.calls: List[Dict[str, str]] = []
        self.side_effect: Optional[Callable[[str], Optional[str]]] = None
        self._lock = threading.Lock()

    def __call__(self, image, lang: str = "eng", **kwargs) -> str:
        name = Path(image).name
        with self._lock:
            self.calls.append({"name": name, "lang": lang})
        if self.side_effect is not None:
            result = self.side_effect(name)
            if result is not None:
                return result
        return self.text

    @property
    def names(self) -> List[str]:
        return sorted(call["name"] for call in self.calls)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers and propagation changes made by setup_logging in CLI runs."""
    logger = logging.getLogger("docprep")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a scratch directory for generated fixture files."""
    return tmp_path


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Create a test configuration with a private kept-temps directory."""
    return Config(temp_dir=tmp_path / "kept", threads=2, timeout_seconds=60)


@pytest.fixture
def fake_ocr(monkeypatch) -> FakeTesseract:
    """Replace Tesseract with a recorder returning meaningful text."""
    fake = FakeTesseract()
    monkeypatch.setattr(pytesseract, "image_to_string", fake)
    return fake


# =============================================================================
# Fixture document builders
# =============================================================================


def _write_pdf(path: Path, pages: List[str]) -> Path:
    """Write a PDF with one page per entry; empty entries give blank pages."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    doc.save(str(path))
    doc.close()
    return path


def _write_image(path: Path, size=(200, 100), mode: str = "RGB", color=(255, 255, 255)) -> Path:
    """Write a solid-colour image; the format follows the file extension."""
    Image.new(mode, size, color).save(path)
    return path


def _write_docx(path: Path, paragraphs: List[List[str]]) -> Path:
    """Write a minimal .docx whose paragraphs consist of the given text runs."""
    body = "".join(
        "<w:p>" + "".join(f"<w:r><w:t>{run}</w:t></w:r>" for run in runs) + "</w:p>"
        for runs in paragraphs
    )
    document = f'<w:document xmlns:w="{WORD_NS}"><w:body>{body}</w:body></w:document>'
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        archive.writestr("word/document.xml", document)
    return path


def _write_pptx(path: Path, slides: List[List[str]]) -> Path:
    """Write a minimal .pptx with one slide per entry, each a list of text runs."""
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        for number, runs in enumerate(slides, start=1):
            shapes = "".join(f"<a:p><a:r><a:t>{run}</a:t></a:r></a:p>" for run in runs)
            slide = f'<p:sld xmlns:a="{DRAWING_NS}" xmlns:p="urn:p">{shapes}</p:sld>'
            archive.writestr(f"ppt/slides/slide{number}.xml", slide)
    return path


def _write_odt(path: Path, heading: str, paragraphs: List[str]) -> Path:
    """Write a minimal .odt with a heading and paragraphs."""
    body = f"<text:h>{heading}</text:h>" + "".join(f"<text:p>{p}</text:p>" for p in paragraphs)
    content = (
        f'<office:document-content xmlns:office="{ODF_OFFICE_NS}" xmlns:text="{ODF_TEXT_NS}">'
        f"<office:body><office:text>{body}</office:text></office:body>"
        "</office:document-content>"
    )
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("mimetype", "application/vnd.oasis.opendocument.text")
        archive.writestr("content.xml", content)
    return path


@pytest.fixture
def make_pdf(temp_dir: Path):
    """Build PDFs in the scratch directory: make_pdf("a.pdf", ["page 1 text", ""])."""
    return lambda name, pages: _write_pdf(temp_dir / name, pages)


@pytest.fixture
def make_image(temp_dir: Path):
    """Build images in the scratch directory: make_image("a.png", size=(10, 10))."""
    return lambda name, **kwargs: _write_image(temp_dir / name, **kwargs)


@pytest.fixture
def make_docx(temp_dir: Path):
    """Build .docx files from paragraphs of text runs."""
    return lambda name, paragraphs: _write_docx(temp_dir / name, paragraphs)


@pytest.fixture
def make_pptx(temp_dir: Path):
    """Build .pptx files from slides of text runs."""
    return lambda name, slides: _write_pptx(temp_dir / name, slides)


@pytest.fixture
def make_odt(temp_dir: Path):
    """Build .odt files from a heading and paragraphs."""
    return lambda name, heading, paragraphs: _write_odt(temp_dir / name, heading, paragraphs)
