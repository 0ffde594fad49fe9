from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class InputRecord:
    """A candidate image discovered by the directory scan."""

    path: Path
    extension: str


@dataclass(slots=True)
class TensorDescriptor:
    """Shape/dtype/buffer view of a decoded image for the analysis engine."""

    shape: tuple[int, ...]
    dtype: str
    buffer: Any
    owns_buffer: bool

    def as_context(self) -> dict[str, Any]:
        """Engine image context whose blob is a flat byte view of ``buffer``.

        The view never copies: for a zero-copy descriptor it aliases the
        decoder's array, which must outlive the context.
        """

        return {
            "format": "NDARRAY",
            "blob": memoryview(self.buffer).cast("B"),
            "dtype": self.dtype,
            "shape": list(self.shape),
        }


@dataclass(frozen=True, slots=True)
class QualityRecord:
    """Flattened quality metrics of the first face found in one image."""

    confidence: float
    total_score: float
    is_sharp: bool
    sharpness_score: float
    is_evenly_illuminated: bool
    no_flare: bool
    is_left_eye_opened: bool
    is_right_eye_opened: bool
    is_rotation_acceptable: bool
    not_masked: bool
    is_neutral_emotion: bool
    is_eyes_distance_acceptable: bool
    eyes_distance: int
    is_margins_acceptable: bool
    is_not_noisy: bool
    has_watermark: bool
    dynamic_range_score: float
    is_dynamic_range_acceptable: bool


@dataclass(frozen=True, slots=True)
class ImageFailure:
    path: str
    error_type: str
    message: str
    code: int | None = None


@dataclass(slots=True)
class BatchSummary:
    """Outcome counters for one batch run."""

    output_path: str
    candidate_count: int = 0
    selected_count: int = 0
    processed_count: int = 0
    written_count: int = 0
    no_face_count: int = 0
    failures: list[ImageFailure] = field(default_factory=list)
