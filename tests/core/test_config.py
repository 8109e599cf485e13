"""Tests for configuration loading."""

import pytest

from mpd_minion.core.config import (
    Config,
    ConnectionConfig,
    apply_environment,
    create_default_config,
    get_log_file_path,
    load_config,
    parse_mpd_host,
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep the user's real config, .env and MPD variables out of the tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("MPD_HOST", raising=False)
    monkeypatch.delenv("MPD_PORT", raising=False)


def write_config(tmp_path, content: str):
    path = tmp_path / "config.toml"
    path.write_text(content, encoding="utf-8")
    return path


class TestConnectionConfig:
    """Tests for ConnectionConfig."""

    def test_defaults(self):
        config = ConnectionConfig()

        assert config.host == "localhost"
        assert config.port == 6600
        assert config.password is None
        assert config.address == "localhost:6600"
        config.validate()

    def test_unix_socket_address(self):
        assert ConnectionConfig(host="/run/mpd/socket").address == "/run/mpd/socket"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"port": 0},
            {"port": 70000},
            {"host": ""},
            {"timeout": 0},
            {"reconnect_interval": -1.0},
            {"heartbeat_interval": 0.0},
        ],
    )
    def test_validate_rejects(self, overrides):
        with pytest.raises(ValueError):
            ConnectionConfig(**overrides).validate()


class TestMpdHost:
    """Tests for MPD_HOST parsing and environment overrides."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("music.lan", (None, "music.lan")),
            ("secret@music.lan", ("secret", "music.lan")),
            ("/run/mpd/socket", (None, "/run/mpd/socket")),
            ("@mpd", (None, "@mpd")),
            ("@music.lan", (None, "@music.lan")),
        ],
    )
    def test_parse_mpd_host(self, value, expected):
        assert parse_mpd_host(value) == expected

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MPD_HOST", "secret@music.lan")
        monkeypatch.setenv("MPD_PORT", "6601")

        config = apply_environment(Config())

        assert config.connection.host == "music.lan"
        assert config.connection.password == "secret"
        assert config.connection.port == 6601

    def test_invalid_port_ignored(self, monkeypatch):
        monkeypatch.setenv("MPD_PORT", "not-a-port")

        assert apply_environment(Config()).connection.port == 6600


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_creates_default(self, tmp_path):
        path = tmp_path / "nested" / "config.toml"

        config = load_config(path)

        assert path.exists()
        assert path.read_text(encoding="utf-8") == create_default_config()
        assert config == Config()

    def test_default_file_round_trips(self, tmp_path):
        path = write_config(tmp_path, create_default_config())

        assert load_config(path) == Config()

    def test_reads_values(self, tmp_path):
        path = write_config(
            tmp_path,
            """
[connection]
host = "music.lan"
port = 6601
password = "secret"
timeout = 5
reconnect_interval = 1.5
heartbeat_interval = 0.5

[logging]
level = "debug"
console_output = true
""",
        )

        config = load_config(path)

        assert config.connection == ConnectionConfig(
            host="music.lan",
            port=6601,
            password="secret",
            timeout=5.0,
            reconnect_interval=1.5,
            heartbeat_interval=0.5,
        )
        assert config.logging.level == "DEBUG"
        assert config.logging.console_output is True

    def test_environment_beats_file(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, '[connection]\nhost = "music.lan"\n')
        monkeypatch.setenv("MPD_HOST", "/run/mpd/socket")

        assert load_config(path).connection.host == "/run/mpd/socket"

    def test_dotenv_in_config_dir(self, tmp_path, monkeypatch):
        # Registered so the value loaded from .env is removed after the test
        monkeypatch.setenv("MPD_PORT", "0")
        monkeypatch.delenv("MPD_PORT")
        env_dir = tmp_path / "config" / "mpd-minion"
        env_dir.mkdir(parents=True)
        (env_dir / ".env").write_text("MPD_PORT=6602\n", encoding="utf-8")
        path = write_config(tmp_path, "")

        assert load_config(path).connection.port == 6602

    def test_invalid_toml_uses_defaults(self, tmp_path):
        path = write_config(tmp_path, "[connection\nhost = ")

        assert load_config(path) == Config()

    def test_invalid_values_use_default_connection(self, tmp_path):
        path = write_config(tmp_path, "[connection]\nport = 0\n")

        assert load_config(path).connection == ConnectionConfig()

    def test_malformed_values_use_default_connection(self, tmp_path):
        path = write_config(tmp_path, '[connection]\ntimeout = "soon"\n')

        assert load_config(path).connection == ConnectionConfig()


class TestPaths:
    def test_log_file_default(self, tmp_path):
        assert get_log_file_path(Config()) == tmp_path / "data" / "mpd-minion" / "mpd-minion.log"

    def test_log_file_override(self, tmp_path):
        config = Config()
        config.logging.log_file = str(tmp_path / "custom.log")

        assert get_log_file_path(config) == tmp_path / "custom.log"
