"""
Processing core: strategy resolution, the step pipeline, text cleaning,
quality filtering, image optimization and OCR.
"""

from docprep.processor.pipeline import Pipeline, ProcessingStep, create_pipeline
from docprep.processor.strategy import SUPPORTED_EXTENSIONS, resolve_strategy

__all__ = [
    "Pipeline",
    "ProcessingStep",
    "create_pipeline",
    "SUPPORTED_EXTENSIONS",
    "resolve_strategy",
]
