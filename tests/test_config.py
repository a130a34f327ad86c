"""
Tests for the configuration module.
"""

from pathlib import Path

import pytest

import repo_vitals.config
from repo_vitals.config import (
    DEFAULT_API_URL,
    DEFAULT_CACHE_TTL,
    get_api_url,
    get_cache_dir,
    get_cache_ttl,
    get_github_token,
    get_retries,
    get_tool_config,
    is_cache_enabled,
    load_config_file,
    set_cache_dir,
    set_cache_ttl,
    set_github_token,
)


@pytest.fixture
def temp_project_root():
    """The (initially empty) project root config files are read from."""
    root = repo_vitals.config.PROJECT_ROOT
    root.mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture
def unset_cache_dir(monkeypatch):
    monkeypatch.setattr(repo_vitals.config, "_CACHE_DIR", None)


def test_tool_config_from_local_file(temp_project_root):
    """Test loading settings from .repo-vitals.toml."""
    (temp_project_root / ".repo-vitals.toml").write_text(
        """
[tool.repo-vitals]
retries = 5
"""
    )

    assert get_tool_config() == {"retries": 5}
    assert get_retries() == 5


def test_tool_config_from_pyproject(temp_project_root):
    """Test loading settings from pyproject.toml."""
    (temp_project_root / "pyproject.toml").write_text(
        """
[tool.repo-vitals]
api_url = "https://github.example.com/api/v3/"
"""
    )

    assert get_api_url() == "https://github.example.com/api/v3"


def test_local_config_takes_priority(temp_project_root):
    """Test that .repo-vitals.toml takes priority over pyproject.toml."""
    (temp_project_root / "pyproject.toml").write_text(
        """
[tool.repo-vitals]
retries = 1
"""
    )
    (temp_project_root / ".repo-vitals.toml").write_text(
        """
[tool.repo-vitals]
retries = 7
"""
    )

    assert get_retries() == 7


def test_defaults_without_config(temp_project_root):
    assert get_tool_config() == {}
    assert get_api_url() == DEFAULT_API_URL
    assert get_retries() == 3
    assert is_cache_enabled() is True


def test_invalid_toml_raises(temp_project_root):
    path = temp_project_root / ".repo-vitals.toml"
    path.write_text("[tool.repo-vitals\nretries = ")

    with pytest.raises(ValueError, match="Failed to load config"):
        load_config_file(path)


def test_missing_file_is_empty(tmp_path):
    assert load_config_file(tmp_path / "missing.toml") == {}


def test_api_url_from_env(monkeypatch):
    monkeypatch.setenv("REPO_VITALS_API_URL", "http://localhost:8080/")
    assert get_api_url() == "http://localhost:8080"


class TestGitHubToken:
    def test_no_token(self):
        assert get_github_token() is None

    def test_env_token(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "from_env")
        assert get_github_token() == "from_env"

    def test_explicit_token_wins(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "from_env")
        set_github_token("explicit")
        assert get_github_token() == "explicit"

    def test_empty_token_falls_back(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "from_env")
        set_github_token("")
        assert get_github_token() == "from_env"


class TestCacheSettings:
    """Test cache directory and TTL resolution."""

    def test_explicit_cache_dir(self, tmp_path):
        set_cache_dir(tmp_path / "explicit")
        assert get_cache_dir() == tmp_path / "explicit"

    def test_cache_dir_from_env(self, monkeypatch, unset_cache_dir, tmp_path):
        monkeypatch.setenv("REPO_VITALS_CACHE_DIR", str(tmp_path / "env"))
        assert get_cache_dir() == tmp_path / "env"

    def test_cache_dir_from_config(self, temp_project_root, unset_cache_dir, tmp_path):
        (temp_project_root / ".repo-vitals.toml").write_text(
            f"""
[tool.repo-vitals.cache]
directory = "{(tmp_path / 'configured').as_posix()}"
"""
        )
        assert get_cache_dir() == Path((tmp_path / "configured").as_posix())

    def test_default_cache_dir(self, unset_cache_dir):
        assert get_cache_dir() == Path.home() / ".cache" / "repo-vitals"

    def test_default_ttl(self):
        assert get_cache_ttl() == DEFAULT_CACHE_TTL == 3600

    def test_ttl_from_env(self, monkeypatch):
        monkeypatch.setenv("REPO_VITALS_CACHE_TTL", "120")
        assert get_cache_ttl() == 120

    def test_invalid_env_ttl_is_ignored(self, monkeypatch):
        monkeypatch.setenv("REPO_VITALS_CACHE_TTL", "soon")
        assert get_cache_ttl() == DEFAULT_CACHE_TTL

    def test_explicit_ttl_wins(self, monkeypatch):
        monkeypatch.setenv("REPO_VITALS_CACHE_TTL", "120")
        set_cache_ttl(30)
        assert get_cache_ttl() == 30

    def test_cache_can_be_disabled(self, temp_project_root):
        (temp_project_root / "pyproject.toml").write_text(
            """
[tool.repo-vitals.cache]
enabled = false
ttl_seconds = 600
"""
        )
        assert is_cache_enabled() is False
        assert get_cache_ttl() == 600
