from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Literal

from quality_scan.config import DEFAULT_EXTENSIONS
from quality_scan.models import InputRecord

logger = logging.getLogger(__name__)

MatchMode = Literal["substring", "suffix"]


def scan_directory(
    directory: str | Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    match_mode: MatchMode = "substring",
) -> list[InputRecord]:
    """List direct-child image files of ``directory`` sorted by filename.

    Extensions are compared case-sensitively. In ``substring`` mode an
    extension may appear anywhere in the name (``a.png.txt`` matches).
    """

    root = Path(directory).expanduser()
    if not root.is_dir():
        logger.warning("Image directory not found or not a directory: %s", root)
        return []

    tokens = list(extensions)
    records: list[InputRecord] = []
    for entry in sorted(root.iterdir(), key=lambda item: item.name):
        if entry.is_dir():
            continue

        extension = match_extension(entry.name, tokens, match_mode)
        if extension is None:
            continue
        records.append(InputRecord(path=entry, extension=extension))

    logger.debug("Scanned %s: %d matching files", root, len(records))
    return records


def match_extension(filename: str, extensions: Iterable[str], match_mode: MatchMode = "substring") -> str | None:
    for extension in extensions:
        if match_mode == "suffix":
            if filename.endswith(extension):
                return extension
        elif extension in filename:
            return extension
    return None
