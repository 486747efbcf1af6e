"""Paths and constants for chartscan."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("CHARTSCAN_HOME", str(Path.home() / ".chartscan"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Chart layout
MANIFEST_FILE = "Chart.yaml"
DEFAULT_VALUES_FILE = "values.yaml"
TEMPLATES_DIR = "templates"
CHARTS_DIR = "charts"
LOCK_FILE = "Chart.lock"
TEMPLATE_EXTENSIONS = {".yaml", ".yml"}

# Project config looked up at the git top-level directory
PROJECT_CONFIG_FILE = "chartscan.yaml"

# Marker helm prints in front of lint failures
ERROR_MARKER = "[ERROR]"

OUTPUT_FORMATS = ("pretty", "json", "yaml", "junit")
DEFAULT_OUTPUT_FORMAT = "pretty"
DEFAULT_MAX_WORKERS = 4
DEFAULT_HELM_BINARY = "helm"

SKIP_DIRS = {".git", ".venv", "venv", "node_modules", "__pycache__"}
