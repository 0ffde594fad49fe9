from __future__ import annotations

from enum import Enum
from typing import Any, Protocol

PipelineContext = dict[str, Any]


class StageKind(str, Enum):
    FACE_DETECTOR = "FACE_DETECTOR"
    FACE_FITTER = "FACE_FITTER"
    QUALITY_ASSESSMENT_ESTIMATOR = "QUALITY_ASSESSMENT_ESTIMATOR"


class ProcessingStage(Protocol):
    """One configured engine unit; mutates the context in place."""

    kind: StageKind

    def __call__(self, context: PipelineContext) -> None: ...


class AnalysisEngine(Protocol):
    """Factory for the processing stages of an analysis backend."""

    def create_stage(self, kind: StageKind, config_name: str | None = None) -> ProcessingStage: ...
