"""Pytest configuration and fixtures for chartscan tests."""

from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest


class FakeHelmClient:
    """Stand-in for HelmClient that never starts a process."""

    def __init__(self, binary: str = "helm"):
        self.binary = binary
        self.lint_result: Tuple[bool, str] = (True, "1 chart(s) linted, 0 chart(s) failed")
        self.lint_results: Dict[str, Tuple[bool, str]] = {}
        self.dependency_error: Optional[Exception] = None
        self.template_output = "---\nkind: ConfigMap\n"
        self.calls: List[tuple] = []

    def dependency_update(self, chart_path, cache_dir):
        self.calls.append(("dependency_update", str(chart_path), str(cache_dir)))
        if self.dependency_error is not None:
            raise self.dependency_error
        (Path(chart_path) / "charts").mkdir(exist_ok=True)
        (Path(chart_path) / "Chart.lock").write_text("dependencies: []\n")

    def lint(self, chart_path, values_files=()):
        self.calls.append(("lint", str(chart_path), list(values_files)))
        return self.lint_results.get(Path(chart_path).name, self.lint_result)

    def template(self, release_name, chart_path, values_files=()):
        self.calls.append(("template", release_name, str(chart_path), list(values_files)))
        return self.template_output


@pytest.fixture
def fake_helm() -> FakeHelmClient:
    return FakeHelmClient()


@pytest.fixture(autouse=True)
def _mock_helm(monkeypatch, fake_helm):
    """Route every HelmClient construction to the shared fake.

    Tests must never shell out to a real helm binary.
    """
    factory = lambda binary="helm": fake_helm  # noqa: E731
    monkeypatch.setattr("chartscan.helm.HelmClient", factory)
    monkeypatch.setattr("chartscan.processor.HelmClient", factory)
    monkeypatch.setattr("chartscan.cli.HelmClient", factory)


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch):
    """Keep user config in a temp dir and disable git-root discovery."""
    home = tmp_path / "chartscan-home"
    monkeypatch.setattr("chartscan.config.BASE_DIR", home)
    monkeypatch.setattr("chartscan.config.CONFIG_FILE", home / "config.toml")
    monkeypatch.setattr("chartscan.config_manager.git_toplevel", lambda cwd=None: None)
    return home


@pytest.fixture
def make_chart(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a chart directory under ``tmp_path/charts``."""

    def _make(
        name: str = "web",
        templates: Optional[Dict[str, str]] = None,
        values: Optional[str] = None,
        manifest: Optional[str] = None,
        root: Optional[Path] = None,
    ) -> Path:
        chart_dir = (root or tmp_path / "charts") / name
        chart_dir.mkdir(parents=True, exist_ok=True)
        (chart_dir / "Chart.yaml").write_text(
            manifest if manifest is not None else f"apiVersion: v2\nname: {name}\nversion: 0.1.0\n"
        )
        if values is not None:
            (chart_dir / "values.yaml").write_text(values)
        if templates is not None:
            tdir = chart_dir / "templates"
            tdir.mkdir(exist_ok=True)
            for filename, body in templates.items():
                path = tdir / filename
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(body)
        return chart_dir

    return _make


@pytest.fixture
def deployment_template() -> str:
    """Template mixing plain lookups with constructs that must be ignored."""
    return """apiVersion: apps/v1
kind: Deployment
metadata:
  name: {{ .Release.Name }}
spec:
  replicas: {{ .Values.replicaCount }}
  template:
    spec:
      containers:
        - name: app
          image: "{{ .Values.image.repository }}:{{ .Values.image.tag }}"
          {{- if .Values.resources }}
          resources: {{ toYaml .Values.resources | nindent 12 }}
          {{- end }}
"""
