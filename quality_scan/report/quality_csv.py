from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import IO, Literal

from quality_scan.errors import OutputError
from quality_scan.models import QualityRecord

logger = logging.getLogger(__name__)

RenderKind = Literal["raw", "score", "flag", "pixels"]


@dataclass(frozen=True, slots=True)
class QualityColumn:
    header: str
    field: str
    source_key: str
    kind: RenderKind


# source_key is read from objects[0]["quality"], except confidence which sits on the object itself.
QUALITY_COLUMNS: tuple[QualityColumn, ...] = (
    QualityColumn("Confidence", "confidence", "confidence", "raw"),
    QualityColumn("totalScore", "total_score", "total_score", "score"),
    QualityColumn("isSharp", "is_sharp", "is_sharp", "flag"),
    QualityColumn("sharpnessScore", "sharpness_score", "sharpness_score", "score"),
    QualityColumn("isEvenlyIlluminated", "is_evenly_illuminated", "is_evenly_illuminated", "flag"),
    QualityColumn("noFlare", "no_flare", "no_flare", "flag"),
    QualityColumn("isLeftEyeOpened", "is_left_eye_opened", "is_left_eye_opened", "flag"),
    QualityColumn("isRightEyeOpened", "is_right_eye_opened", "is_right_eye_opened", "flag"),
    QualityColumn("isRotationAcceptable", "is_rotation_acceptable", "is_rotation_acceptable", "flag"),
    QualityColumn("notMasked", "not_masked", "not_masked", "flag"),
    QualityColumn("isNeutralEmotion", "is_neutral_emotion", "is_neutral_emotion", "flag"),
    QualityColumn("isEyesDistanceAcceptable", "is_eyes_distance_acceptable", "is_eyes_distance_acceptable", "flag"),
    QualityColumn("eyesDistance", "eyes_distance", "eyes_distance", "pixels"),
    QualityColumn("isMarginsAcceptable", "is_margins_acceptable", "is_margins_acceptable", "flag"),
    QualityColumn("isNotNoisy", "is_not_noisy", "is_not_noisy", "flag"),
    QualityColumn("hasWatermark", "has_watermark", "has_watermark", "flag"),
    QualityColumn("dynamicRangeScore", "dynamic_range_score", "dynamic_range_score", "score"),
    QualityColumn("isDynamicRangeAcceptable", "is_dynamic_range_acceptable", "is_dynamic_range_acceptable", "flag"),
)

CSV_HEADER: list[str] = [column.header for column in QUALITY_COLUMNS]


def format_row(record: QualityRecord) -> list[str]:
    """Render a record as CSV cells: scores in percent, flags as 1/0."""

    return [_render(getattr(record, column.field), column.kind) for column in QUALITY_COLUMNS]


def _render(value: float | int | bool, kind: RenderKind) -> str:
    if kind == "flag":
        return "1" if value else "0"
    if kind == "score":
        return str(int(float(value) * 100))
    if kind == "pixels":
        return str(int(value))
    # matches C++ iostream default formatting (6 significant digits)
    return f"{float(value):g}"


class QualityCsvSink:
    """Single-writer CSV stream for quality records.

    The header is written when the sink opens; each ``write`` appends one
    complete line and flushes it, so an aborted run leaves only whole rows.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.rows_written = 0
        self._handle: IO[str] | None = None
        self._writer = None

    def open(self) -> "QualityCsvSink":
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self.path.open("w", newline="", encoding="utf-8")
            self._writer = csv.writer(self._handle, lineterminator="\n")
            self._writer.writerow(CSV_HEADER)
        except OSError as exc:
            self.close()
            raise OutputError(f"Unable to open result file {self.path}: {exc}") from exc

        logger.debug("Opened result file %s", self.path)
        return self

    def write(self, record: QualityRecord) -> None:
        if self._writer is None or self._handle is None:
            raise OutputError(f"Result file is not open: {self.path}")

        try:
            self._writer.writerow(format_row(record))
            self._handle.flush()
        except OSError as exc:
            raise OutputError(f"Unable to write result file {self.path}: {exc}") from exc
        self.rows_written += 1

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._writer = None

    def __enter__(self) -> "QualityCsvSink":
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
