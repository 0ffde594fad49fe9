from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable

from quality_scan.config import DEFAULT_EXTENSIONS
from quality_scan.errors import EngineError
from quality_scan.ingest.sample import BoundedSampler
from quality_scan.ingest.scan import MatchMode, scan_directory
from quality_scan.models import BatchSummary, ImageFailure
from quality_scan.pipeline.orchestrator import QualityPipeline
from quality_scan.report.quality_csv import QualityCsvSink

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, Path], None]


def run_batch(
    directory: str | Path,
    *,
    pipeline: QualityPipeline,
    sampler: BoundedSampler,
    num_processed: int = 0,
    output_path: str | Path = "result.csv",
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    match_mode: MatchMode = "substring",
    fail_fast: bool = False,
    on_progress: ProgressCallback | None = None,
) -> BatchSummary:
    """Scan, sample and score a directory of images into a CSV report.

    Each image runs inside its own error boundary: any exception raised while
    processing it is logged and recorded in the summary and the batch moves
    on. ``fail_fast`` re-raises the first such failure instead. Failures to
    write the report itself always abort.
    """

    candidates = scan_directory(directory, extensions, match_mode)
    selected = sampler.sample(candidates, num_processed)
    summary = BatchSummary(
        output_path=str(output_path),
        candidate_count=len(candidates),
        selected_count=len(selected),
    )
    logger.info("Selected %d of %d images from %s", len(selected), len(candidates), directory)

    total = len(selected)
    with QualityCsvSink(output_path) as sink:
        for index, item in enumerate(selected, start=1):
            logger.info("Processing: %s (%d/%d)", item.path, index, total)
            if on_progress is not None:
                on_progress(index, total, item.path)

            try:
                record = pipeline.process(item.path)
            except Exception as exc:
                if fail_fast:
                    raise
                failure = ImageFailure(
                    path=str(item.path),
                    error_type=type(exc).__name__,
                    message=str(exc),
                    code=exc.code if isinstance(exc, EngineError) else None,
                )
                summary.failures.append(failure)
                logger.warning("Skipping %s: %s: %s", item.path, failure.error_type, failure.message)
                continue

            summary.processed_count += 1
            if record is None:
                summary.no_face_count += 1
                continue

            sink.write(record)
            summary.written_count += 1

    logger.info(
        "Batch finished: %d rows written, %d without face, %d failed",
        summary.written_count,
        summary.no_face_count,
        len(summary.failures),
    )
    return summary
