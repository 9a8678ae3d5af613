"""Tests for filededup.config — TOML file + env overrides."""
import pytest

from filededup import config as config_mod
from filededup.config import load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in ("FILEDEDUP_SERVER", "FILEDEDUP_MACHINE_ID", "FILEDEDUP_DB_PATH"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("FILEDEDUP_CONFIG_PATH", str(tmp_path / "filededup.config"))
    return tmp_path / "filededup.config"


class TestLoadConfig:
    def test_defaults_without_file(self):
        cfg = load_config()
        assert cfg["server"]["url"] == "http://localhost:8080"
        assert cfg["agent"]["batch_size"] == 1000
        assert cfg["agent"]["workers"] == 0
        assert cfg["agent"]["queue_size"] == 0
        assert cfg["agent"]["skip_large"] is False
        assert cfg["agent"]["max_size"] == 1024 ** 3

    def test_file_values_merge_over_defaults(self, clean_env):
        clean_env.write_text(
            '[server]\nurl = "http://nas:8080"\n\n[agent]\nbatch_size = 250\n'
        )
        cfg = load_config()
        assert cfg["server"]["url"] == "http://nas:8080"
        assert cfg["agent"]["batch_size"] == 250
        # untouched keys keep their defaults
        assert cfg["agent"]["progress_interval"] == 3

    def test_env_overrides_file(self, clean_env, monkeypatch):
        clean_env.write_text('[server]\nurl = "http://nas:8080"\n')
        monkeypatch.setenv("FILEDEDUP_SERVER", "http://env:1234")
        monkeypatch.setenv("FILEDEDUP_MACHINE_ID", "env-box")
        cfg = load_config()
        assert cfg["server"]["url"] == "http://env:1234"
        assert cfg["agent"]["machine_id"] == "env-box"

    def test_db_path_env(self, monkeypatch):
        monkeypatch.setenv("FILEDEDUP_DB_PATH", "/tmp/x.duckdb")
        assert load_config()["_db_path"] == "/tmp/x.duckdb"

    def test_defaults_not_mutated(self, clean_env):
        clean_env.write_text('[agent]\nworkers = 9\n')
        load_config()
        assert config_mod._DEFAULT["agent"]["workers"] == 0


class TestGetters:
    def test_singleton_loaded_once(self, monkeypatch):
        monkeypatch.setattr(config_mod, "_config", None)
        first = config_mod.get_config()
        assert config_mod.get_config() is first

    def test_server_url_getter(self, monkeypatch):
        monkeypatch.setattr(config_mod, "_config", None)
        monkeypatch.setenv("FILEDEDUP_SERVER", "http://getter:1")
        assert config_mod.get_server_url() == "http://getter:1"
        monkeypatch.setattr(config_mod, "_config", None)
