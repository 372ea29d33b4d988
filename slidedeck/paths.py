#!/usr/bin/env python3
"""Output and scratch directory handling for CLI runs.

Every run writes into an explicit ``output_dir``. Scratch files (the live
view document, debug dumps) go to ``.slidedeck_tmp`` inside it, or to a
system temporary directory when the output directory does not allow
creating it. Scratch space is removed at interpreter exit unless
``keep_tmp`` is set and it lives inside the output directory.
"""
from __future__ import annotations

import atexit
import errno
import shutil
import tempfile
from pathlib import Path
from typing import Dict


__all__ = ["prepare_workspace", "TMP_DIR_NAME"]

TMP_DIR_NAME = ".slidedeck_tmp"


def prepare_workspace(output_dir: str | Path, *, keep_tmp: bool = False) -> Dict[str, Path]:
    """Create the output directory and a scratch directory, and register cleanup.

    Parameters
    ----------
    output_dir
        Directory for the deck HTML, outline, record and PDF. Created if
        missing.
    keep_tmp
        Leave the scratch directory on disk after exit. Ignored when the
        scratch directory had to fall back to the system temp location.

    Returns
    -------
    dict with keys ``output_dir`` and ``tmp_dir`` (absolute paths)
    """
    out_path = Path(output_dir).expanduser().resolve()
    out_path.mkdir(parents=True, exist_ok=True)

    tmp_path = out_path / TMP_DIR_NAME
    use_fallback = False
    try:
        tmp_path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:  # read-only share, permission denied
        if exc.errno not in (errno.EACCES, errno.EROFS):
            raise
        use_fallback = True
        tmp_path = Path(tempfile.mkdtemp(prefix="slidedeck_tmp_"))

    if not keep_tmp or use_fallback:
        atexit.register(shutil.rmtree, tmp_path, ignore_errors=True)

    return {
        "output_dir": out_path,
        "tmp_dir": tmp_path,
    }
