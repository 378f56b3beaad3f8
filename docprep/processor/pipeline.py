"""
Processing pipeline - owns step selection and the document lifecycle.

Control flow is explicit:
- resolve the strategy once from the file extension
- run every registered step that applies, in registration order
- stop on the first failure (no partial result)
- stamp completion metadata
"""

import asyncio
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import FrozenSet, List, Optional

from docprep.config import Config, get_config
from docprep.models import Document, Strategy
from docprep.processor.strategy import resolve_strategy
from docprep.utils.errors import InvalidProcessorError, ProcessingTimeoutError, UnsupportedFileError
from docprep.utils.logging import LogContext, get_logger, log_performance

logger = get_logger(__name__)


class ProcessingStep(ABC):
    """Abstract base class for extraction steps."""

    #: Step name used in logs
    name: str = "processing_step"

    #: Strategies this step runs for
    applicable_strategies: FrozenSet[Strategy] = frozenset()

    def applies_to(self, strategy: Strategy) -> bool:
        """Check whether the step runs for a strategy."""
        return strategy in self.applicable_strategies

    @abstractmethod
    async def process(self, document: Document, config: Config) -> None:
        """
        Extract content from the document's file into the document.

        Implementations only append to prompt_parts and attachments.

        Args:
            document: Document to mutate
            config: Shared read-only configuration

        Raises:
            DocprepException: On any extraction failure
        """
        pass


class Pipeline:
    """
    Runs registered steps against a document.

    Steps execute strictly one after another; a step never observes another
    step running on the same document.
    """

    def __init__(self, config: Optional[Config] = None) -> None:
        """
        Initialize the pipeline.

        Args:
            config: Processing configuration (defaults to the environment)
        """
        self.config = config or get_config()
        self._steps: List[ProcessingStep] = []

    @property
    def steps(self) -> List[ProcessingStep]:
        """Registered steps, in registration order."""
        return list(self._steps)

    def add_step(self, step: ProcessingStep) -> None:
        """
        Register a step after the existing ones.

        Raises:
            InvalidProcessorError: If step is not a ProcessingStep instance
        """
        if not isinstance(step, ProcessingStep):
            raise InvalidProcessorError(step)
        self._steps.append(step)

    @log_performance
    async def run(self, document: Document) -> Document:
        """
        Process a document with every applicable step.

        Args:
            document: Document shell with file_path set

        Returns:
            The same document, populated and finalized

        Raises:
            UnsupportedFileError: If the path has no extension
            ProcessingTimeoutError: If config.timeout_seconds elapses
            DocprepException: The first step failure, unchanged
        """
        extension = Path(document.file_path).suffix.lstrip(".")
        if not extension:
            raise UnsupportedFileError("No file extension", document.file_path)

        strategy = resolve_strategy(extension)
        document.file_type = extension
        document.strategy = strategy.value
        logger.info(f"Processing {document.file_path} with {strategy.value} strategy")

        timeout = self.config.timeout_seconds
        with LogContext(file_path=document.file_path, strategy=strategy.value):
            if timeout:
                try:
                    await asyncio.wait_for(self._run_steps(document, strategy), timeout=timeout)
                except asyncio.TimeoutError as e:
                    logger.error(f"Processing {document.file_path} timed out after {timeout}s")
                    raise ProcessingTimeoutError(f"process {document.file_path}", timeout) from e
            else:
                await self._run_steps(document, strategy)

        if document.metadata is not None:
            completed_at = int(time.time())
            document.metadata.completed_at = completed_at
            document.metadata.total_duration_ms = (completed_at - document.metadata.started_at) * 1000

        logger.info(
            f"Finished {document.file_path}: {len(document.prompt_parts)} prompt parts, "
            f"{len(document.attachments)} attachments"
        )
        return document

    async def _run_steps(self, document: Document, strategy: Strategy) -> None:
        for step in self._steps:
            if step.applies_to(strategy):
                logger.debug(f"Running step {step.name}")
                await step.process(document, self.config)


def create_pipeline(config: Optional[Config] = None) -> Pipeline:
    """Create a pipeline with the standard steps in their fixed order."""
    from docprep.steps import STEP_REGISTRY

    pipeline = Pipeline(config)
    for step_class in STEP_REGISTRY:
        pipeline.add_step(step_class())
    return pipeline
