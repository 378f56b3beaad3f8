"""
Plain text extraction.

Text files are passed through verbatim: no normalization is applied, so the
prompt part reproduces the file byte for byte inside the data tag.
"""

from docprep.config import Config
from docprep.models import Document, Strategy
from docprep.processor.pipeline import ProcessingStep
from docprep.processor.preprocessor import format_extracted_data
from docprep.utils.errors import ExtractionError
from docprep.utils.logging import get_logger, log_performance

logger = get_logger(__name__)


class TextExtractor(ProcessingStep):
    """Read a text file and append it as one prompt part."""

    name = "text_processor"
    applicable_strategies = frozenset({Strategy.TEXT})

    @log_performance
    async def process(self, document: Document, config: Config) -> None:
        try:
            with open(document.file_path, encoding="utf-8", newline="") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ExtractionError(str(e), {"file_path": document.file_path}) from e

        logger.debug(f"Read {len(content)} characters from {document.file_path}")
        document.prompt_parts.append(format_extracted_data(content))
