# src/pipeline/runner.py — v3
"""Pipeline runner: drive documents from a reader through stages.

Instantiates the reader and every stage from their descriptions, pushes
each document through the stages in order, then notifies the stages that
the collection is complete. Synchronous and single-threaded.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from cascache.logging.context import (
    clear_context,
    set_run_context,
    set_stage_context,
)
from cascache.pipeline.stages import StageChain

if TYPE_CHECKING:
    from cascache.core.models import Document
    from cascache.pipeline.description import (
        PreprocessingDescription,
        ReaderDescription,
    )

logger = logging.getLogger(__name__)


def generate_run_id(timestamp: datetime | None = None) -> str:
    """Generate a run_id: yyyymmdd_hhmm_{uuid4_short}."""
    ts = timestamp or datetime.now(timezone.utc)
    short_uuid = uuid.uuid4().hex[:5]
    return f"{ts.strftime('%Y%m%d_%H%M')}_{short_uuid}"


@dataclass
class RunResult:
    """Result of a full pipeline run."""

    run_id: str = ""
    documents: list[Document] = field(default_factory=list)
    document_count: int = 0
    duration_ms: int = 0
    stage_names: list[str] = field(default_factory=list)


def run_pipeline(
    reader: ReaderDescription,
    *stages: PreprocessingDescription,
    keep_documents: bool = True,
    run_id: str | None = None,
) -> RunResult:
    """Run all documents produced by reader through stages.

    The reader is closed on every path, including a stage that fails to
    construct.

    Args:
        reader: Description of the document source.
        *stages: Stage or chain descriptions, applied in the given order.
        keep_documents: Collect processed documents in the result.
        run_id: Identifier attached to log records (generated if None).

    Returns:
        RunResult with processed documents and timing.
    """
    start = time.monotonic()
    result = RunResult(run_id=run_id or generate_run_id())
    set_run_context(result.run_id)
    try:
        _drive(reader, stages, result, keep_documents)
        result.duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Pipeline complete: %d documents, %dms",
            result.document_count,
            result.duration_ms,
        )
    finally:
        clear_context()
    return result


def _drive(
    reader: ReaderDescription,
    stages: tuple[PreprocessingDescription, ...],
    result: RunResult,
    keep_documents: bool,
) -> None:
    source = reader.create()
    try:
        chain = StageChain(description.create() for description in stages)
        result.stage_names = [stage.name for stage in chain.stages]

        logger.info(
            "Starting pipeline %s: reader=%s, stages=[%s]",
            result.run_id,
            reader.name,
            ", ".join(result.stage_names),
        )

        for document in source:
            set_stage_context(chain.name, document_id=document.id)
            processed = chain.process(document)
            result.document_count += 1
            if keep_documents:
                result.documents.append(processed)
        chain.close()
    finally:
        source.close()
        set_stage_context(None)
