"""JSON Lines helpers shared by the record store and agent mailboxes."""
import fcntl
import json
import logging
import os
from pathlib import Path
from typing import Any, List

logger = logging.getLogger(__name__)


def append_jsonl(path: Path, value: dict) -> None:
    """Append one JSON document as a single line.

    The write happens under an exclusive ``flock`` so concurrent
    appenders never interleave within a line. A final line left without
    its newline by a crashed writer is terminated first, so the new
    document starts on a line of its own.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = (json.dumps(value, ensure_ascii=False, default=str) + "\n").encode("utf-8")
    with open(path, "a+b") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        try:
            end = f.seek(0, os.SEEK_END)
            if end:
                f.seek(end - 1)
                if f.read(1) != b"\n":
                    data = b"\n" + data
            f.write(data)
            f.flush()
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def read_jsonl(path: Path) -> List[Any]:
    """Read every JSON line of ``path``.

    A missing file reads as empty. Lines that fail to decode or parse (for
    example a torn final line after a crash) are skipped.
    """
    if not path.exists():
        return []

    rows = []
    with open(path, "rb") as f:
        for number, raw in enumerate(f, 1):
            try:
                line = raw.decode("utf-8").strip()
                if not line:
                    continue
                rows.append(json.loads(line))
            except (UnicodeDecodeError, json.JSONDecodeError):
                logger.warning(f"Skipping unreadable line {number} in {path}")
    return rows


def write_json(path: Path, value: dict) -> None:
    """Write a JSON document with stable formatting."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(value, indent=2, default=str) + "\n", encoding="utf-8")


def read_json(path: Path) -> dict:
    with open(path, encoding="utf-8") as f:
        return json.load(f)
