"""
Tests for office document extraction.
"""

import pytest

from docprep.models import Document
from docprep.processor.pipeline import create_pipeline
from docprep.steps.office import OfficeExtractor
from docprep.utils.errors import ExtractionError


class TestOfficeExtractor:
    """Test the per-format readers and the plain text fallback."""

    @pytest.mark.asyncio
    async def test_docx_runs(self, config, make_docx):
        """Test that w:t runs are joined with spaces and cleaned."""
        path = make_docx("letter.docx", [["Dear", "reader,"], ["Thanks", "for", "reading."]])

        document = await create_pipeline(config).run(Document.create(path))

        assert document.strategy == "office"
        assert document.prompt_parts == [
            "<EXTRACTED_DATA>Dear reader, Thanks for reading.</EXTRACTED_DATA>"
        ]

    @pytest.mark.asyncio
    async def test_pptx_slides_in_order(self, config, make_pptx):
        """Test that slides are newline-separated in archive order."""
        path = make_pptx("deck.pptx", [["Quarterly", "review"], ["Revenue", "grew"]])

        document = await create_pipeline(config).run(Document.create(path))

        assert document.prompt_parts == [
            "<EXTRACTED_DATA>Quarterly review\nRevenue grew</EXTRACTED_DATA>"
        ]

    @pytest.mark.asyncio
    async def test_odt_paragraphs(self, config, make_odt):
        """Test that ODF headings and paragraphs become lines."""
        path = make_odt("minutes.odt", "Minutes", ["First item.", "Second item."])

        document = await create_pipeline(config).run(Document.create(path))

        assert document.prompt_parts == [
            "<EXTRACTED_DATA>Minutes\nFirst item.\nSecond item.</EXTRACTED_DATA>"
        ]

    @pytest.mark.asyncio
    async def test_rtf_control_lines_dropped(self, config, temp_dir):
        """Test the line-based RTF strip."""
        path = temp_dir / "memo.rtf"
        path.write_text(
            "{\\rtf1\\ansi\\deff0\n"
            "{\\fonttbl{\\f0 Times;}}\n"
            "\\f0\\fs24\n"
            "Meeting moved to Friday.\\par\n"
            "Bring the slides.\\par\n"
            "}\n",
            encoding="utf-8",
        )

        document = await create_pipeline(config).run(Document.create(path))

        assert document.prompt_parts == [
            "<EXTRACTED_DATA>Meeting moved to Friday.\nBring the slides.</EXTRACTED_DATA>"
        ]

    @pytest.mark.asyncio
    async def test_legacy_format_falls_back_to_text(self, config, temp_dir):
        """Test that formats without a reader are read as plain text."""
        path = temp_dir / "old.doc"
        path.write_text("Plain   text\r\nfallback content", encoding="utf-8")

        document = await create_pipeline(config).run(Document.create(path))

        assert document.prompt_parts == [
            "<EXTRACTED_DATA>Plain text\nfallback content</EXTRACTED_DATA>"
        ]

    @pytest.mark.asyncio
    async def test_binary_legacy_format_fails(self, config, temp_dir):
        """Test that undecodable fallback content fails extraction."""
        path = temp_dir / "old.ppt"
        path.write_bytes(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1\xff\xfe")
        document = Document.create(path)

        with pytest.raises(ExtractionError):
            await create_pipeline(config).run(document)

        assert document.prompt_parts == []

    @pytest.mark.asyncio
    async def test_corrupt_container(self, config, temp_dir):
        """Test that a .docx that is not a zip archive fails extraction."""
        path = temp_dir / "broken.docx"
        path.write_bytes(b"definitely not a zip")

        with pytest.raises(ExtractionError):
            await create_pipeline(config).run(Document.create(path))

    def test_extract_text_without_reader(self, temp_dir):
        """Test that formats without a structured reader return None."""
        path = temp_dir / "old.doc"
        path.write_text("anything", encoding="utf-8")

        assert OfficeExtractor().extract_text(path) is None
