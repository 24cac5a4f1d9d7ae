"""File output and YAML input for the converter.

Plot spoolers typically watch a directory and send any new ``.hpgl``
file to the plotter as soon as it appears.  Programs and previews are
therefore staged in a hidden temp file beside the target, synced and
renamed into place in one step; a reader sees either the old file or
the complete new one.

Usage:
    from svg_hpgl.utils import fs
    fs.atomic_write_text(out_dir / "drawing.hpgl", hpgl_text)
    data = fs.load_yaml("plot.yaml")
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Union

import yaml

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Create *p* (and parents) if missing; return it as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(path: PathLike, data: bytes) -> None:
    """Replace *path* with *data* in a single rename.

    Parameters
    ----------
    path : str | Path
        Target file; missing parent directories are created.
    data : bytes
        Complete file content.

    Raises
    ------
    RuntimeError
        If staging or the rename fails.  The staged file is removed and
        an existing target is left untouched.
    """
    path = Path(path)
    directory = ensure_dir(path.parent)

    fd, staged = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".part", dir=directory)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(staged, path)
    except OSError as e:
        Path(staged).unlink(missing_ok=True)
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def atomic_write_text(path: PathLike, text: str, encoding: str = "utf-8") -> None:
    atomic_write_bytes(path, text.encode(encoding))


def load_yaml(path: PathLike) -> Any:
    """Parse a YAML file with ``safe_load``.

    Returns whatever the document holds; an empty file gives ``None``.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    yaml.YAMLError
        If the document is malformed; the message names the file.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"{path}: {e}") from e
