from __future__ import annotations

import gzip
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence, TextIO

logger = logging.getLogger(__name__)


def ensure_outdir(path: str | Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def open_textmaybe_gzip(path: str | Path, mode: str = "rt") -> TextIO:
    p = str(path)
    if p.endswith(".gz"):
        return gzip.open(p, mode)  # type: ignore[return-value]
    return open(p, mode)


def write_json(path: str | Path, obj: Any) -> None:
    with open(path, "wt", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)


def iter_input_lines(paths: Optional[Sequence[str]]) -> Iterator[str]:
    """Yield lines from each path in turn (``-`` or no paths means stdin)."""
    if not paths:
        paths = ["-"]
    for p in paths:
        if p == "-":
            logger.debug("Reading from stdin")
            yield from sys.stdin
            continue
        logger.debug("Reading %s", p)
        with open_textmaybe_gzip(p, "rt") as fh:
            yield from fh
