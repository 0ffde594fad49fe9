from __future__ import annotations

from pathlib import Path

import pytest

from quality_scan.batch import run_batch
from quality_scan.engine.base import PipelineContext, StageKind
from quality_scan.errors import DecodeError, EngineError
from quality_scan.ingest.sample import BoundedSampler
from quality_scan.pipeline.orchestrator import QualityPipeline

from conftest import FakeEngine, FakeStage


class _FailingStage:
    """Raises ``error`` for images whose first pixel byte equals ``fail_level``."""

    def __init__(self, inner: FakeStage, error: Exception, fail_level: int):
        self.kind = inner.kind
        self._inner = inner
        self._error = error
        self._fail_level = fail_level

    def __call__(self, context: PipelineContext) -> None:
        if context["image"]["blob"][0] == self._fail_level:
            raise self._error
        self._inner(context)


class _FailingEngine(FakeEngine):
    def __init__(self, fail_kind: StageKind, error: Exception, fail_level: int):
        super().__init__()
        self._fail_kind = fail_kind
        self._error = error
        self._fail_level = fail_level

    def create_stage(self, kind: StageKind, config_name: str | None = None):
        stage = super().create_stage(kind, config_name)
        if kind is self._fail_kind:
            return _FailingStage(stage, self._error, self._fail_level)
        return stage


def _read_rows(path: Path) -> list[list[str]]:
    return [line.split(",") for line in path.read_text(encoding="utf-8").splitlines()]


def test_run_batch_writes_rows_for_faces_only(tmp_path: Path, fake_engine, write_image) -> None:
    images_dir = tmp_path / "images"
    for name, level in [("a.png", 51), ("b.png", 0), ("c.png", 255)]:
        write_image(name, level, directory=images_dir)
    output = tmp_path / "result.csv"

    summary = run_batch(
        images_dir,
        pipeline=QualityPipeline(fake_engine),
        sampler=BoundedSampler(seed=0),
        output_path=output,
    )

    rows = _read_rows(output)
    assert len(rows) == 3
    assert [row[12] for row in rows[1:]] == ["51", "255"]
    assert summary.candidate_count == 3
    assert summary.processed_count == 3
    assert summary.written_count == 2
    assert summary.no_face_count == 1
    assert summary.failures == []


def test_run_batch_skips_failed_images_and_records_them(tmp_path: Path, fake_engine, write_image) -> None:
    images_dir = tmp_path / "images"
    write_image("good.png", 120, directory=images_dir)
    (images_dir / "broken.png").write_bytes(b"garbage")
    output = tmp_path / "result.csv"

    summary = run_batch(
        images_dir,
        pipeline=QualityPipeline(fake_engine),
        sampler=BoundedSampler(seed=0),
        output_path=output,
    )

    assert summary.written_count == 1
    assert len(summary.failures) == 1
    assert summary.failures[0].error_type == "DecodeError"
    assert summary.failures[0].path.endswith("broken.png")
    assert len(_read_rows(output)) == 2


def test_run_batch_fail_fast_aborts_but_keeps_header(tmp_path: Path, fake_engine) -> None:
    images_dir = tmp_path / "images"
    images_dir.mkdir()
    (images_dir / "broken.png").write_bytes(b"garbage")
    output = tmp_path / "result.csv"

    with pytest.raises(DecodeError):
        run_batch(
            images_dir,
            pipeline=QualityPipeline(fake_engine),
            sampler=BoundedSampler(seed=0),
            output_path=output,
            fail_fast=True,
        )

    assert len(_read_rows(output)) == 1


def test_run_batch_limits_to_sample_size_and_reports_progress(tmp_path: Path, fake_engine, write_image) -> None:
    images_dir = tmp_path / "images"
    for idx in range(6):
        write_image(f"img_{idx}.png", 30 + idx, directory=images_dir)
    seen: list[tuple[int, int]] = []

    summary = run_batch(
        images_dir,
        pipeline=QualityPipeline(fake_engine),
        sampler=BoundedSampler(seed=5),
        num_processed=2,
        output_path=tmp_path / "result.csv",
        on_progress=lambda index, total, _path: seen.append((index, total)),
    )

    assert summary.selected_count == 2
    assert seen == [(1, 2), (2, 2)]


def test_run_batch_on_missing_directory_writes_header_only(tmp_path: Path, fake_engine) -> None:
    output = tmp_path / "result.csv"

    summary = run_batch(
        tmp_path / "nowhere",
        pipeline=QualityPipeline(fake_engine),
        sampler=BoundedSampler(),
        output_path=output,
    )

    assert summary.candidate_count == 0
    assert len(_read_rows(output)) == 1


def test_run_batch_records_engine_error_code_and_continues(tmp_path: Path, write_image) -> None:
    images_dir = tmp_path / "images"
    for name, level in [("a.png", 60), ("b.png", 90), ("c.png", 120)]:
        write_image(name, level, directory=images_dir)
    engine = _FailingEngine(StageKind.FACE_FITTER, EngineError("fitter model missing", code=0x2C0F), fail_level=90)
    output = tmp_path / "result.csv"

    summary = run_batch(
        images_dir,
        pipeline=QualityPipeline(engine),
        sampler=BoundedSampler(seed=0),
        output_path=output,
    )

    assert summary.written_count == 2
    assert len(summary.failures) == 1
    failure = summary.failures[0]
    assert failure.path.endswith("b.png")
    assert failure.error_type == "EngineError"
    assert failure.code == 0x2C0F
    assert [row[12] for row in _read_rows(output)[1:]] == ["60", "120"]


def test_run_batch_skips_unexpected_stage_exceptions(tmp_path: Path, write_image) -> None:
    images_dir = tmp_path / "images"
    for name, level in [("a.png", 70), ("b.png", 140)]:
        write_image(name, level, directory=images_dir)
    engine = _FailingEngine(StageKind.QUALITY_ASSESSMENT_ESTIMATOR, KeyError("quality"), fail_level=70)
    output = tmp_path / "result.csv"

    summary = run_batch(
        images_dir,
        pipeline=QualityPipeline(engine),
        sampler=BoundedSampler(seed=0),
        output_path=output,
    )

    assert summary.written_count == 1
    assert summary.failures[0].error_type == "KeyError"
    assert summary.failures[0].code is None
    assert [row[12] for row in _read_rows(output)[1:]] == ["140"]
