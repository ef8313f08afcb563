"""
Pytest Configuration
====================

Adds the repository root to sys.path so the top-level packages
(surfacing, utilities, exporters, loaders, viz) import without installation,
and isolates every test from user YAML overrides.
"""
import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).resolve().parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


@pytest.fixture(autouse=True)
def builtin_defaults(monkeypatch, tmp_path):
    """Run each test against the built-in configuration only."""
    from surfacing.config import reload_surfacer_defaults
    from viz.config import reload_viz_defaults

    monkeypatch.delenv("SURFACER_DEFAULTS_YAML", raising=False)
    monkeypatch.delenv("VIZ_DEFAULTS_YAML", raising=False)
    monkeypatch.chdir(tmp_path)
    reload_surfacer_defaults()
    reload_viz_defaults()
    yield
    reload_surfacer_defaults()
    reload_viz_defaults()
