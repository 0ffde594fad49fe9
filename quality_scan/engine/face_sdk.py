from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from quality_scan.engine.base import PipelineContext, StageKind
from quality_scan.errors import EngineError

logger = logging.getLogger(__name__)


class FaceSdkStage:
    """Processing block of the 3DiVi Face SDK behind the plain-dict context."""

    def __init__(self, service: Any, block: Any, kind: StageKind, error_type: type[BaseException]):
        self._service = service
        self._block = block
        self._error_type = error_type
        self.kind = kind

    def __call__(self, context: PipelineContext) -> None:
        try:
            sdk_context = self._service.create_context(_vendor_payload(context))
            self._block(sdk_context)
            result = sdk_context.to_dict()
        except self._error_type as exc:
            raise EngineError(f"{self.kind.value} failed: {exc}", code=_error_code(exc)) from exc
        except (TypeError, KeyError, ValueError, AttributeError) as exc:
            raise EngineError(f"{self.kind.value} context round-trip failed: {type(exc).__name__}: {exc}") from exc

        context.update(result)


class FaceSdkEngine:
    def __init__(self, service: Any, error_type: type[BaseException]):
        self._service = service
        self._error_type = error_type

    @classmethod
    def create(
        cls,
        sdk_root: str | Path,
        *,
        library_relpath: str,
        config_relpath: str,
        license_relpath: str,
    ) -> "FaceSdkEngine":
        """Load the Face SDK service from an install root."""

        try:
            from face_sdk_3divi import FacerecService
            from face_sdk_3divi.error import Error as SdkError
        except ImportError as exc:
            raise EngineError(
                "Face SDK Python binding 'face_sdk_3divi' is not installed. "
                "Install it from the SDK distribution (python_api directory)."
            ) from exc

        root = Path(sdk_root).expanduser()
        library_path = root / library_relpath
        if not library_path.exists():
            raise EngineError(f"Face SDK library not found: {library_path}")

        try:
            service = FacerecService.create_service(
                str(library_path),
                str(root / config_relpath),
                str(root / license_relpath),
            )
        except SdkError as exc:
            raise EngineError(f"Failed to create Face SDK service: {exc}", code=_error_code(exc)) from exc

        logger.info("Face SDK service created from %s", root)
        return cls(service, SdkError)

    def create_stage(self, kind: StageKind, config_name: str | None = None) -> FaceSdkStage:
        block_config: dict[str, Any] = {"unit_type": kind.value}
        if config_name:
            block_config["config_name"] = config_name

        try:
            block = self._service.create_processing_block(block_config)
        except self._error_type as exc:
            raise EngineError(f"Failed to create {kind.value} block: {exc}", code=_error_code(exc)) from exc

        logger.debug("Created processing block %s", block_config)
        return FaceSdkStage(self._service, block, kind, self._error_type)


def _error_code(exc: BaseException) -> int | None:
    code = getattr(exc, "code", None)
    if callable(code):
        code = code()
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


def _vendor_payload(context: PipelineContext) -> PipelineContext:
    # the binding only accepts bytes blobs
    image = context.get("image")
    if isinstance(image, dict) and isinstance(image.get("blob"), memoryview):
        return {**context, "image": {**image, "blob": image["blob"].tobytes()}}
    return context
