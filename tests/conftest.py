"""The conftest.py file serves as a means of providing fixtures for an entire directory.

Fixtures defined in a conftest.py can be used by any test in that package without needing to import them.
"""

import pytest

from visiontv.config import Config, reset_config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep every test away from the real user config and env overrides."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "xdg"))
    monkeypatch.delenv("VISIONTV_FILMIX_COOKIE", raising=False)
    monkeypatch.delenv("VISIONTV_USER_AGENT", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config():
    """A default config with test origins."""
    return Config(filmix_url="https://filmix.test", rezka_url="https://rezka.test")
