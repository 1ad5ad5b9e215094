"""
Unit tests for ServerConfig and CLI configuration loading.
"""

import pytest

from staticserver.config import ServerConfig, parse_bool
from staticserver.__main__ import build_parser, load_config


class TestDefaults:

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 8000
        assert config.index_filename == "index.html"
        assert config.enable_directory_listing is True
        assert config.read_timeout == 5.0
        assert config.max_request_line == 8192
        assert config.max_workers is None
        assert config.server_name == "StaticServer/0.1"

    def test_defaults_validate(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        ServerConfig().validate()

    def test_root_path_absolute(self, site_root, monkeypatch):
        monkeypatch.chdir(site_root)
        assert ServerConfig(root="assets").root_path == site_root.resolve() / "assets"


class TestValidate:

    @pytest.mark.parametrize("changes", [
        {"port": -1},
        {"port": 65536},
        {"read_timeout": 0},
        {"read_timeout": -1.0},
        {"max_request_line": 63},
        {"max_workers": 0},
        {"backlog": 0},
        {"log_level": "LOUD"},
        {"log_format": "xml"},
        {"index_filename": "a/index.html"},
        {"index_filename": "a\\index.html"},
        {"index_filename": ".."},
        {"index_filename": "."},
    ])
    def test_invalid(self, config, changes):
        with pytest.raises(ValueError):
            config.override(**changes).validate()

    def test_missing_root(self, config, tmp_path):
        with pytest.raises(ValueError, match="not a directory"):
            config.override(root=tmp_path / "nope").validate()

    def test_file_root(self, config, site_root):
        with pytest.raises(ValueError):
            config.override(root=site_root / "notes").validate()

    def test_empty_index_allowed(self, config):
        config.override(index_filename="").validate()

    def test_port_zero_allowed(self, config):
        config.override(port=0).validate()


class TestFromEnv:

    def test_empty_env_is_defaults(self):
        assert ServerConfig.from_env({}) == ServerConfig()

    def test_all_variables(self, site_root):
        config = ServerConfig.from_env({
            "STATICSERVER_HOST": "0.0.0.0",
            "STATICSERVER_PORT": "3000",
            "STATICSERVER_ROOT": str(site_root),
            "STATICSERVER_INDEX": "home.html",
            "STATICSERVER_LISTING": "off",
            "STATICSERVER_TIMEOUT": "1.5",
            "STATICSERVER_MAX_WORKERS": "8",
            "STATICSERVER_LOG_LEVEL": "debug",
            "STATICSERVER_LOG_FORMAT": "JSON",
        })

        assert config.host == "0.0.0.0"
        assert config.port == 3000
        assert config.root == str(site_root)
        assert config.index_filename == "home.html"
        assert config.enable_directory_listing is False
        assert config.read_timeout == 1.5
        assert config.max_workers == 8
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_empty_index_disables(self):
        assert ServerConfig.from_env({"STATICSERVER_INDEX": ""}).index_filename == ""

    def test_bad_number(self):
        with pytest.raises(ValueError):
            ServerConfig.from_env({"STATICSERVER_PORT": "eighty"})

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("STATICSERVER_PORT", "9123")
        assert ServerConfig.from_env().port == 9123


class TestParseBool:

    @pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
    def test_true(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["0", "false", "No", "off", ""])
    def test_false(self, value):
        assert parse_bool(value) is False

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_bool("maybe")


class TestCommandLine:

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("HOST", "PORT", "ROOT", "INDEX", "LISTING", "TIMEOUT",
                     "MAX_WORKERS", "LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(f"STATICSERVER_{name}", raising=False)

    def test_flags(self, site_root):
        config = load_config([
            "--host", "0.0.0.0", "-p", "0", "-r", str(site_root),
            "-i", "", "--no-listing", "-t", "2", "-w", "4",
            "-l", "debug", "--log-format", "json",
        ])

        assert config.host == "0.0.0.0"
        assert config.port == 0
        assert config.root == str(site_root)
        assert config.index_filename == ""
        assert config.enable_directory_listing is False
        assert config.read_timeout == 2.0
        assert config.max_workers == 4
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_flags_override_environment(self, site_root, monkeypatch):
        monkeypatch.setenv("STATICSERVER_PORT", "9000")
        monkeypatch.setenv("STATICSERVER_HOST", "0.0.0.0")

        config = load_config(["-r", str(site_root), "-p", "9001"])

        assert config.port == 9001
        assert config.host == "0.0.0.0"

    def test_unset_flags_keep_defaults(self, site_root):
        config = load_config(["-r", str(site_root)])

        assert config.enable_directory_listing is True
        assert config.index_filename == "index.html"

    def test_invalid_root(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(["-r", str(tmp_path / "nope")])

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--version"])
        assert "staticserver 0.1.0" in capsys.readouterr().out
