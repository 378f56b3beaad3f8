"""
docprep - turn heterogeneous documents into one normalized record for a
language model: extracted text parts, page images and processing metadata.
"""

from docprep.config import Config, get_config
from docprep.models import Attachment, Document, QueryMetadata, Strategy
from docprep.processor.pipeline import Pipeline, ProcessingStep, create_pipeline

__version__ = "0.1.0"

__all__ = [
    "Attachment",
    "Config",
    "Document",
    "Pipeline",
    "ProcessingStep",
    "QueryMetadata",
    "Strategy",
    "create_pipeline",
    "get_config",
]
