from __future__ import annotations
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = "_ja"


def read_text_file(path: str) -> str:
    # newline="" keeps "\r\n" intact so line counts match the file on disk
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_text_file(path: str, text: str) -> None:
    parent = Path(path).parent
    parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    logger.debug(f"Wrote {len(text)} chars to {path}")


def default_output_path(input_path: str, suffix: str = OUTPUT_SUFFIX) -> str:
    """doc.md -> doc_ja.md, next to the input."""
    p = Path(input_path)
    return str(p.with_name(f"{p.stem}{suffix}{p.suffix}"))
