from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path

import typer

from quality_scan.batch import run_batch
from quality_scan.config import Settings, load_settings
from quality_scan.engine.base import AnalysisEngine
from quality_scan.engine.face_sdk import FaceSdkEngine
from quality_scan.ingest.sample import BoundedSampler
from quality_scan.logging_config import configure_logging
from quality_scan.pipeline.orchestrator import QualityPipeline

app = typer.Typer(help="Batch face image quality assessment into result.csv.")

logger = logging.getLogger(__name__)


def _bootstrap(config_path: Path | None) -> Settings:
    settings = load_settings(config_path)
    configure_logging(settings.logging)
    logger.debug("Loaded runtime settings from %s", config_path)
    return settings


def _create_engine(settings: Settings, sdk_path: Path) -> AnalysisEngine:
    return FaceSdkEngine.create(
        sdk_path,
        library_relpath=settings.sdk.library_relpath,
        config_relpath=settings.sdk.config_relpath,
        license_relpath=settings.sdk.license_relpath,
    )


def _echo_progress(index: int, total: int, path: Path) -> None:
    typer.echo(f"[{index}/{total}] Processing: {path}", err=True)


@app.command()
def scan(
    directory: Path | None = typer.Option(None, "--dir", help="Directory with images to assess."),
    sdk_path: Path | None = typer.Option(None, "--sdk-path", help="Face SDK install root (defaults to sdk.path)."),
    num_processed: int = typer.Option(0, "--num-processed", help="Random sample size; 0 or less processes all images."),
    output: Path | None = typer.Option(None, "--output", "-o", help="CSV output path (defaults to output.result_path)."),
    seed: int | None = typer.Option(None, "--seed", help="Seed for reproducible sampling."),
    fail_fast: bool = typer.Option(
        False,
        "--fail-fast",
        help="Abort the batch on the first image error instead of skipping it (or set batch.fail_fast).",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        envvar="QUALITY_SCAN_CONFIG",
        help="Path to YAML configuration file.",
    ),
) -> None:
    """Assess face quality for images in --dir and write one CSV row per face."""

    if directory is None:
        typer.echo("--dir is required", err=True)
        raise typer.Exit(code=1)

    try:
        settings = _bootstrap(config_path)
        resolved_sdk_path = sdk_path or settings.sdk.path
        resolved_output = output or settings.output.result_path
        resolved_seed = seed if seed is not None else settings.sampling.seed
        resolved_fail_fast = fail_fast or settings.batch.fail_fast

        engine = _create_engine(settings, resolved_sdk_path)
        pipeline = QualityPipeline(engine, settings.sdk.quality_config_name)
        summary = run_batch(
            directory,
            pipeline=pipeline,
            sampler=BoundedSampler(resolved_seed),
            num_processed=num_processed,
            output_path=resolved_output,
            extensions=settings.scan.extensions,
            match_mode=settings.scan.match_mode,
            fail_fast=resolved_fail_fast,
            on_progress=_echo_progress,
        )
    except (RuntimeError, ValueError, OSError) as exc:
        logger.error("Quality scan failed: %s", exc)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(json.dumps({"status": "ok", **asdict(summary)}, indent=2))


if __name__ == "__main__":
    app()
