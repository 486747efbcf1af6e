"""Discovery of chart directories."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Union

from .config import MANIFEST_FILE, SKIP_DIRS
from .errors import WalkError

logger = logging.getLogger(__name__)


def find_chart_dirs(root: Union[str, Path]) -> List[str]:
    """Return every directory under *root* (inclusive) holding a Chart.yaml.

    Raises WalkError if *root* itself cannot be walked.
    """
    root = str(root)
    if not os.path.exists(root):
        raise WalkError(root, "no such file or directory")

    chart_dirs: List[str] = []

    def _on_error(exc: OSError) -> None:
        if exc.filename == root:
            raise WalkError(root, exc.strerror or str(exc))
        logger.warning("Skipping %s: %s", exc.filename, exc.strerror)

    for dirpath, dirnames, _ in os.walk(root, onerror=_on_error):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        if os.path.isfile(os.path.join(dirpath, MANIFEST_FILE)):
            chart_dirs.append(dirpath)

    logger.debug("Found %d chart(s) under %s", len(chart_dirs), root)
    return chart_dirs
