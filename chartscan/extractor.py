"""Extraction of ``.Values`` references from chart templates.

Only the plain lookup form ``{{ .Values.some.path }}`` is recognised. Any other
template action (``if``, ``range``, pipelines, function calls) is ignored; it
is neither a reference nor an error.
"""

from __future__ import annotations

import logging
import os
import re
import stat
from pathlib import Path
from typing import List, Tuple, Union

from .config import TEMPLATE_EXTENSIONS, TEMPLATES_DIR
from .errors import LoadError, ParseError, WalkError
from .models import ValueReference

logger = logging.getLogger(__name__)

# The body is allowed to be empty so that ``{{ .Values. }}`` is caught as an error
VALUES_REFERENCE = re.compile(r"\{\{\s*\.Values\.([A-Za-z0-9_.\[\]-]*)\s*\}\}")


def extract_references(text: str, file: str) -> List[ValueReference]:
    """Return every value reference in *text*, in file order.

    Line numbers are 1-based. A placeholder with an empty path fails the whole
    file with ParseError; no partial list is returned.
    """
    references: List[ValueReference] = []
    for lineno, line in enumerate(text.split("\n"), start=1):
        for match in VALUES_REFERENCE.finditer(line):
            name = match.group(1).strip()
            if not name:
                raise ParseError(f"empty value reference: {match.group(0)}")
            references.append(ValueReference(
                name=name,
                file=file,
                line=lineno,
                full_text=match.group(0),
            ))
    return references


def parse_template_file(path: Union[str, Path]) -> List[ValueReference]:
    # Placeholders are ASCII; undecodable bytes elsewhere must not hide them
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise LoadError(str(exc)) from exc
    return extract_references(text, str(path))


def parse_templates(chart_path: Union[str, Path]) -> Tuple[List[ValueReference], List[str]]:
    """Collect references from every template file of a chart.

    Returns the references and the diagnostics raised along the way. A chart
    without a templates directory has neither. Unreadable entries are
    reported and the walk carries on with the remaining files.
    """
    references: List[ValueReference] = []
    errors: List[str] = []
    templates_dir = os.path.join(str(chart_path), TEMPLATES_DIR)

    try:
        info = os.stat(templates_dir)
    except FileNotFoundError:
        return references, errors
    except OSError as exc:
        errors.append(f"Error accessing templates directory: {exc}")
        return references, errors
    if not stat.S_ISDIR(info.st_mode):
        errors.append(f"Expected templates to be a directory but found a file: {templates_dir}")
        return references, errors

    def _on_error(exc: OSError) -> None:
        err = WalkError(exc.filename or templates_dir, exc.strerror or str(exc))
        logger.warning("%s", err)
        errors.append(str(err))

    for root, dirs, files in os.walk(templates_dir, onerror=_on_error):
        dirs.sort()
        for name in sorted(files):
            if os.path.splitext(name)[1] not in TEMPLATE_EXTENSIONS:
                continue
            path = os.path.join(root, name)
            try:
                references.extend(parse_template_file(path))
            except LoadError as exc:
                errors.append(str(WalkError(path, str(exc))))
            except ParseError as exc:
                errors.append(f"Error parsing template file {path}: {exc}")

    logger.debug("Found %d value references in %s", len(references), templates_dir)
    return references, errors
