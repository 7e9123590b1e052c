"""
Tests for environment configuration.
"""

from pathlib import Path

import pytest

from afgjobs.env import DEFAULT_QUOTA_CHARS, DEFAULT_STORE, get_config, load_env


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("AFGJOBS_STORE", "AFGJOBS_QUOTA_CHARS", "AFGJOBS_LOG_LEVEL", "AFGJOBS_LOG_DIR", "AFGJOBS_LOG_FILE"):
        # set first so teardown also clears anything load_env adds
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


class TestGetConfig:
    def test_defaults(self):
        config = get_config()
        assert config.store == DEFAULT_STORE
        assert config.quota_chars == DEFAULT_QUOTA_CHARS
        assert config.log_level == "INFO"
        assert config.log_dir == Path("logs")
        assert config.log_to_file is True

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("AFGJOBS_STORE", ":memory:")
        monkeypatch.setenv("AFGJOBS_QUOTA_CHARS", "1000")
        monkeypatch.setenv("AFGJOBS_LOG_LEVEL", "debug")
        monkeypatch.setenv("AFGJOBS_LOG_FILE", "off")
        config = get_config()
        assert config.store == ":memory:"
        assert config.quota_chars == 1000
        assert config.log_level == "DEBUG"
        assert config.log_to_file is False

    def test_zero_quota_is_unlimited(self, monkeypatch):
        monkeypatch.setenv("AFGJOBS_QUOTA_CHARS", "0")
        assert get_config().quota_chars is None

    def test_bad_quota(self, monkeypatch):
        monkeypatch.setenv("AFGJOBS_QUOTA_CHARS", "lots")
        with pytest.raises(SystemExit):
            get_config()


class TestLoadEnv:
    def test_reads_dotenv_file(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("AFGJOBS_STORE=data/from-dotenv.json\n")
        monkeypatch.chdir(tmp_path)
        load_env()
        assert get_config().store == "data/from-dotenv.json"

    def test_missing_file_is_fine(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        load_env()
        assert get_config().store == DEFAULT_STORE
