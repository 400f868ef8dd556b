"""
Tests for the YAML configuration and logging setup.
"""
import logging
from pathlib import Path

import pydantic
import pytest
import yaml

from remote_tools import config, logger


def write_yaml(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data))
    return path


PROFILES = {
    "profiles": {
        "build": {
            "address": "192.0.2.20",
            "port": 2222,
            "username": "ci",
            "private_key": "~/.ssh/id_ed25519",
            "host_key_policy": "accept-new",
            "timeout": 15,
        },
        "minimal": {
            "address": "192.0.2.21",
            "username": "ops",
            "private_key": "/keys/ops",
        },
    }
}


class TestConfigFile:

    def test_template_is_valid(self):
        assert config.CONFIG_TEMPLATE_PATH.exists()
        loaded = config.load_config(config.CONFIG_TEMPLATE_PATH)
        assert loaded.profiles == {}

    def test_config_dir_from_env(self, tmp_path):
        assert config.config_dir() == tmp_path / "config"
        assert config.default_config_path() == tmp_path / "config" / "config.yaml"

    def test_initialize_user_config_copies_template(self):
        path = config.initialize_user_config()
        assert path.exists()
        assert path.read_text() == config.CONFIG_TEMPLATE_PATH.read_text()

    def test_lookup_falls_back_to_template(self):
        assert config.configuration_file() == config.CONFIG_TEMPLATE_PATH

    def test_user_config_beats_template(self):
        path = write_yaml(config.default_config_path(), PROFILES)
        assert config.configuration_file() == path

    def test_env_var_beats_user_config(self, tmp_path, monkeypatch):
        write_yaml(config.default_config_path(), PROFILES)
        env_path = write_yaml(tmp_path / "other.yaml", {"profiles": {}})
        monkeypatch.setenv("REMOTE_TOOLS_CONFIG", str(env_path))
        assert config.configuration_file() == env_path

    def test_explicit_path_must_exist(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="missing.yaml"):
            config.configuration_file(tmp_path / "missing.yaml")


class TestProfiles:

    def test_load_profiles(self, tmp_path):
        loaded = config.load_config(write_yaml(tmp_path / "c.yaml", PROFILES))

        build = loaded.get_profile("build")
        assert build.address == "192.0.2.20"
        assert build.port == 2222
        assert build.host_key_policy == "accept-new"
        assert build.timeout == 15
        assert build.private_key == Path("~/.ssh/id_ed25519").expanduser()

    def test_defaults(self, tmp_path):
        minimal = config.load_config(write_yaml(tmp_path / "c.yaml", PROFILES)).get_profile("minimal")
        assert minimal.port == 22
        assert minimal.host_key_policy == "strict"
        assert minimal.timeout is None
        assert minimal.known_hosts == Path.home() / ".ssh" / "known_hosts"

    def test_unknown_profile_lists_known_ones(self, tmp_path):
        loaded = config.load_config(write_yaml(tmp_path / "c.yaml", PROFILES))
        with pytest.raises(KeyError, match="build, minimal"):
            loaded.get_profile("prod")

    def test_bad_policy_rejected(self, tmp_path):
        data = {"profiles": {"x": {**PROFILES["profiles"]["minimal"], "host_key_policy": "trust-me"}}}
        with pytest.raises(pydantic.ValidationError):
            config.load_config(write_yaml(tmp_path / "c.yaml", data))

    def test_bad_port_rejected(self, tmp_path):
        data = {"profiles": {"x": {**PROFILES["profiles"]["minimal"], "port": 70000}}}
        with pytest.raises(pydantic.ValidationError):
            config.load_config(write_yaml(tmp_path / "c.yaml", data))

    def test_empty_file_is_empty_config(self, tmp_path):
        empty = tmp_path / "empty.yaml"
        empty.write_text("")
        assert config.load_config(empty).profiles == {}


class TestLogging:

    def test_load_config_builds_handlers(self, tmp_path):
        log_config = logger.load_config()

        assert logger.logging_config_path().exists()
        handlers = log_config["handlers"]
        assert handlers["remote_tools_plaintextFileHandler"]["filename"] == str(tmp_path / "logs" / "log.txt")
        assert handlers["remote_tools_jsonFileHandler"]["filename"] == str(tmp_path / "logs" / "log.jsonl")
        assert handlers["remote_tools_consoleHandler"]["level"] == "WARNING"
        # library mode: no handlers until the app configures them
        assert log_config["loggers"]["remote_tools"]["handlers"] == []

    def test_config_logging_for_app(self, tmp_path, monkeypatch):
        monkeypatch.setattr(logger, "_logging_configured", False)
        root = logging.getLogger("remote_tools")
        saved = root.handlers[:]
        try:
            logger.config_logging_for_app()
            assert len(root.handlers) == 3
            logging.getLogger("remote_tools.test").info("hello json")
            for handler in root.handlers:
                handler.flush()
            assert "hello json" in (tmp_path / "logs" / "log.jsonl").read_text()

            # second call is a no-op
            logger.config_logging_for_app()
            assert len(root.handlers) == 3
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = saved
