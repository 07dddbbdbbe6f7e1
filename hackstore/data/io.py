"""
Store file readers and writers.

**Conceptual**: This module is the *only* I/O boundary for store files. The
repository and the integrity manager never open files themselves; they go
through these functions so that:
  - Every rewrite is atomic: content goes to a temporary sibling file that
    then replaces the target with os.replace(). A crash mid-write leaves
    either the old file or the new one, never a truncated mix.
  - Every file is read and written as UTF-8 with "\\n" line terminators.
  - A missing file reads as "no lines", never as an error.

**What this module does not do**: locking. Two processes rewriting the same
file race, and the last os.replace() wins (the other writer's update is lost).
The store is single-writer by contract.

I/O failures (permissions, disk full) are logged and re-raised unchanged.
Nothing here retries.
"""

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from hackstore.utils.logging_config import get_logger

logger = get_logger(__name__)

ENCODING = "utf-8"
LINE_TERMINATOR = "\n"


def iter_raw_lines(path: Path | str) -> Iterator[str]:
    """
    Yield the lines of a store file exactly as stored, terminators included.

    Yields nothing if the file does not exist. The file is opened lazily and
    closed when the generator is exhausted or closed.

    Args:
        path: Store file path.

    Yields:
        Each line, with its original terminator ("\\n", "\\r\\n" or none for
        a final unterminated line).
    """
    path = Path(path)
    if not path.exists():
        return

    # newline="" keeps "\r\n" intact so untouched rows can be written back byte-for-byte
    with open(path, "r", encoding=ENCODING, newline="") as handle:
        yield from handle


def read_first_line(path: Path | str) -> str | None:
    """
    Read only the first line of a file, without its terminator.

    Returns:
        The first line ("" for an empty file), or None if the file is missing.
    """
    path = Path(path)
    if not path.exists():
        return None

    with open(path, "r", encoding=ENCODING, newline="") as handle:
        return handle.readline().rstrip("\r\n")


def write_text_atomic(path: Path | str, content: str) -> None:
    """
    Replace a file's content atomically.

    Writes to a hidden temporary file in the same directory (so os.replace()
    stays on one filesystem), fsyncs it, then swaps it into place. The parent
    directory is created if necessary.

    Raises:
        OSError: If the directory cannot be created or the file cannot be
                 written or replaced. The temporary file is removed first.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp-{os.getpid()}")

    try:
        with open(tmp, "w", encoding=ENCODING, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp, path)
    except OSError:
        logger.error("Failed to write store file %s", path)
        tmp.unlink(missing_ok=True)
        raise


def write_lines_atomic(path: Path | str, lines: Iterable[str]) -> None:
    """
    Rewrite a file from lines (given without terminators).

    Each line is terminated with "\\n", including the last one.

    Example:
        >>> write_lines_atomic("data/teams.csv", ["id,name", "T1,Rocket"])
        # data/teams.csv now reads "id,name\\nT1,Rocket\\n"
    """
    write_text_atomic(path, "".join(f"{line}{LINE_TERMINATOR}" for line in lines))


def replace_first_line(path: Path | str, first_line: str) -> None:
    """
    Replace line 1 of a file, leaving every other line byte-identical.

    An empty file ends up containing just `first_line` and a terminator.
    The original terminator of line 1 is kept when it had one.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Cannot repair header of missing file: {path}")

    lines = list(iter_raw_lines(path))
    if not lines:
        write_text_atomic(path, first_line + LINE_TERMINATOR)
        return

    old_first = lines[0]
    terminator = old_first[len(old_first.rstrip("\r\n")):] or LINE_TERMINATOR
    lines[0] = first_line + terminator
    write_text_atomic(path, "".join(lines))
