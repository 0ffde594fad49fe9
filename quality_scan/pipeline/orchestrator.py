from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from quality_scan.engine.base import AnalysisEngine, PipelineContext, StageKind
from quality_scan.engine.tensor import to_tensor
from quality_scan.errors import EngineError
from quality_scan.ingest.decode import decode_image
from quality_scan.models import QualityRecord
from quality_scan.report.quality_csv import QUALITY_COLUMNS

logger = logging.getLogger(__name__)

DEFAULT_QUALITY_CONFIG = "quality_assessment.xml"


class QualityPipeline:
    """Detector -> fitter -> quality estimator over one image at a time."""

    def __init__(self, engine: AnalysisEngine, quality_config_name: str = DEFAULT_QUALITY_CONFIG):
        self.detector = engine.create_stage(StageKind.FACE_DETECTOR)
        self.fitter = engine.create_stage(StageKind.FACE_FITTER)
        self.quality = engine.create_stage(StageKind.QUALITY_ASSESSMENT_ESTIMATOR, quality_config_name)

    def process(self, image_path: str | Path) -> QualityRecord | None:
        """Score the first face in ``image_path``; ``None`` when no face is found."""

        image = decode_image(image_path)
        record = self.process_image(image)
        if record is None:
            logger.info("No face detected in %s", image_path)
        return record

    def process_image(self, image: Any) -> QualityRecord | None:
        tensor = to_tensor(image)
        context: PipelineContext = {"image": tensor.as_context()}

        self.detector(context)
        if not context.get("objects"):
            return None

        self.fitter(context)
        self.quality(context)
        return extract_quality_record(context)


def extract_quality_record(context: PipelineContext) -> QualityRecord:
    """Map the first detected object of an engine context to a typed record."""

    objects = context.get("objects")
    if not isinstance(objects, list) or not objects or not isinstance(objects[0], dict):
        raise EngineError("Engine context has no detected objects to extract.")

    first = objects[0]
    quality = first.get("quality")
    if not isinstance(quality, dict):
        raise EngineError("Detected object has no quality assessment.")

    values: dict[str, Any] = {}
    for column in QUALITY_COLUMNS:
        source = first if column.field == "confidence" else quality
        if column.source_key not in source:
            raise EngineError(f"Quality field missing from engine output: {column.source_key}")
        values[column.field] = _coerce(source[column.source_key], column.kind, column.source_key)

    return QualityRecord(**values)


def _coerce(value: Any, kind: str, key: str) -> Any:
    try:
        if kind == "flag":
            return bool(value)
        if kind == "pixels":
            return int(value)
        return float(value)
    except (TypeError, ValueError) as exc:
        raise EngineError(f"Malformed quality field {key}: {value!r}") from exc
