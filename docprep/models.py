"""
Core data models for docprep.

The Document record is threaded through the pipeline and mutated in place by
each step. All models are Pydantic so a finished document can be projected to
JSON (attachment bytes as base64) without any lossy conversion.
"""

import time
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


# =============================================================================
# Enums
# =============================================================================


class Strategy(str, Enum):
    """Extraction strategy resolved from a file extension."""

    TEXT = "text"
    SPREADSHEET = "spreadsheet"
    PDF = "pdf"
    OFFICE = "office"
    IMAGE = "image"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Document Models
# =============================================================================


class Attachment(BaseModel):
    """A page-numbered encoded image bundled with the document."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    page: int = Field(..., ge=1, description="Page number (1-indexed)")
    data: bytes = Field(..., description="PNG-encoded image bytes")


class ProcessingStepRecord(BaseModel):
    """Timing record for one step; populated by external callers only."""

    name: str
    duration_ms: int = 0
    status: str = ""
    memory_mb: int = 0


class QueryMetadata(BaseModel):
    """Processing metadata for a document."""

    started_at: int = Field(0, description="Epoch seconds when processing started")
    completed_at: int = Field(0, description="Epoch seconds when processing completed")
    total_duration_ms: int = 0
    original_file_size: int = Field(0, ge=0, description="Input size in bytes")
    errors: List[str] = Field(default_factory=list)
    steps: List[ProcessingStepRecord] = Field(default_factory=list)


class Document(BaseModel):
    """The record that accumulates extracted text parts and page images."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    file_type: str = Field("", description="File extension, set by the pipeline")
    file_path: str = Field(..., description="Path of the input file")
    strategy: str = Field("", description="Resolved strategy, set by the pipeline")
    prompt_parts: List[str] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    system: str = DEFAULT_SYSTEM_PROMPT
    prompt: str = ""
    metadata: Optional[QueryMetadata] = None

    @classmethod
    def create(
        cls,
        file_path: Union[str, Path],
        system: str = DEFAULT_SYSTEM_PROMPT,
    ) -> "Document":
        """
        Build the initial document shell for a file.

        Stamps the start time and original file size; file type and strategy
        are left for the pipeline to derive.

        Args:
            file_path: Input file
            system: System instruction for the downstream model

        Returns:
            A fresh document with empty parts and attachments
        """
        path = Path(file_path)
        return cls(
            file_path=str(path),
            system=system,
            metadata=QueryMetadata(
                started_at=int(time.time()),
                original_file_size=path.stat().st_size,
            ),
        )
