from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

import cv2
import numpy as np
import pytest

from quality_scan.engine.base import PipelineContext, StageKind


def fake_quality(level: int) -> dict[str, Any]:
    ratio = level / 255
    return {
        "total_score": ratio,
        "is_sharp": level >= 128,
        "sharpness_score": ratio / 2,
        "is_evenly_illuminated": True,
        "no_flare": True,
        "is_left_eye_opened": True,
        "is_right_eye_opened": level % 2 == 0,
        "is_rotation_acceptable": True,
        "not_masked": True,
        "is_neutral_emotion": False,
        "is_eyes_distance_acceptable": True,
        "eyes_distance": level,
        "is_margins_acceptable": True,
        "is_not_noisy": True,
        "has_watermark": False,
        "dynamic_range_score": 1 - ratio,
        "is_dynamic_range_acceptable": level < 200,
    }


class FakeStage:
    """Deterministic stand-in for an engine unit keyed on the first pixel byte."""

    def __init__(self, kind: StageKind, calls: list[StageKind], config_name: str | None):
        self.kind = kind
        self.config_name = config_name
        self._calls = calls

    def __call__(self, context: PipelineContext) -> None:
        self._calls.append(self.kind)
        level = context["image"]["blob"][0]

        if self.kind is StageKind.FACE_DETECTOR:
            context["objects"] = [{"confidence": 0.5 + level / 510, "bbox": [0, 0, 4, 4]}] if level else []
        elif self.kind is StageKind.FACE_FITTER:
            context["objects"][0]["keypoints"] = {"left_eye": [1, 1], "right_eye": [3, 1]}
        else:
            context["objects"][0]["quality"] = fake_quality(level)


class FakeEngine:
    def __init__(self) -> None:
        self.calls: list[StageKind] = []
        self.created: dict[StageKind, str | None] = {}

    def create_stage(self, kind: StageKind, config_name: str | None = None) -> FakeStage:
        self.created[kind] = config_name
        return FakeStage(kind, self.calls, config_name)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def write_image(tmp_path: Path) -> Callable[..., Path]:
    """Write a flat-colored PNG whose every channel equals ``level``."""

    def _write(name: str, level: int, directory: Path | None = None, size: tuple[int, int] = (8, 6)) -> Path:
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        image = np.full((size[0], size[1], 3), level, dtype=np.uint8)
        assert cv2.imwrite(str(path), image)
        return path

    return _write


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """Keep handlers bound to a CliRunner's (closed) streams from leaking into later tests."""

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
