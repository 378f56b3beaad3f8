"""
Tests for text normalization and prompt-part tags.
"""

import pytest

from docprep.processor.preprocessor import clean_text, format_extracted_data, format_ocr_data


class TestCleanText:
    """Test the normalization pipeline."""

    def test_empty_and_whitespace(self):
        """Test that blank input yields an empty string."""
        assert clean_text("") == ""
        assert clean_text("   \n\t \r\n ") == ""

    def test_line_endings_normalized(self):
        """Test CRLF and CR conversion."""
        assert clean_text("Line one\r\nLine two\rLine three") == "Line one\nLine two\nLine three"

    def test_vertical_stroke_noise_removed(self):
        """Test that runs of |, I, i and l disappear."""
        assert clean_text("Total ||| amount") == "Total amount"

    def test_dot_leaders_collapsed(self):
        """Test that dot and colon runs become an ellipsis."""
        assert clean_text("Chapter 1.......5") == "Chapter 1...5"
        assert clean_text("Wait::::: here") == "Wait... here"

    def test_underscores_and_dashes_collapsed(self):
        """Test that underscore and dash runs become a double dash."""
        assert clean_text("Name ________ Date") == "Name -- Date"
        assert clean_text("well - known") == "well - known"

    def test_horizontal_whitespace_collapsed(self):
        """Test spaces and tabs inside a line."""
        assert clean_text("a  lot\t\tof   space") == "a lot of space"

    def test_short_lines_dropped(self):
        """Test that lines of one character or less are removed."""
        assert clean_text("Title\nx\n  \nBody text") == "Title\nBody text"

    def test_blank_lines_removed(self):
        """Test that blank lines between paragraphs do not survive."""
        assert clean_text("Para one\n\n\n\nPara two") == "Para one\nPara two"

    def test_line_emptied_by_noise_is_dropped(self):
        """Test that a line left empty after noise removal is dropped too."""
        assert clean_text("Header\n|||\nFooter") == "Header\nFooter"

    @pytest.mark.parametrize(
        "text",
        [
            "Simple sentence.",
            "  Lots   of\r\n\r\n spacing\t here  ",
            "Total ||| amount\n\n\nnext ..... line",
            "ab\nc\n__--__\nIII lll\n:::",
            "x |.| y\n-\n--\n.|.|.|.",
            "I i l | .:.:. _-_-_",
        ],
    )
    def test_idempotent(self, text):
        """Test that cleaning cleaned text changes nothing."""
        once = clean_text(text)
        assert clean_text(once) == once


class TestTags:
    """Test the prompt-part tag formatters."""

    def test_extracted_data_tag(self):
        """Test the extracted-data wrapper."""
        assert format_extracted_data("hello") == "<EXTRACTED_DATA>hello</EXTRACTED_DATA>"

    def test_ocr_tag(self):
        """Test the OCR wrapper carries the page number."""
        assert format_ocr_data("hello", 3) == "<OCR PAGE=3>hello</OCR>"
