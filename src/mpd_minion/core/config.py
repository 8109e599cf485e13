"""
Configuration management for MPD Minion
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6600


@dataclass
class ConnectionConfig:
    """Configuration for the MPD connection."""

    host: str = DEFAULT_HOST  # Hostname, or absolute path of a Unix socket
    port: int = DEFAULT_PORT
    password: Optional[str] = None
    timeout: float = 10.0  # Transport read/write timeout in seconds
    reconnect_interval: float = 3.0  # Delay between connection attempts
    heartbeat_interval: float = 1.0  # Heartbeat period (elapsed time refresh)

    @property
    def address(self) -> str:
        """Human readable server address for log messages."""
        if self.host.startswith("/"):
            return self.host
        return f"{self.host}:{self.port}"

    def validate(self) -> None:
        """Validate connection configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not self.host:
            raise ValueError("Host must not be empty")
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be within 1-65535")
        for name in ("timeout", "reconnect_interval", "heartbeat_interval"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"Invalid {name}: {value}. Must be positive")


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/mpd-minion/mpd-minion.log)
    )
    console_output: bool = False  # Also output to stderr (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "mpd-minion"
    return Path.home() / ".config" / "mpd-minion"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            if config_path.exists():
                return config_path
            return None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/mpd-minion (or ~/.config/mpd-minion)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "mpd-minion"
    return Path.home() / ".local" / "share" / "mpd-minion"


def get_log_file_path(config: Config) -> Path:
    """Get the log file path, honouring a configured override."""
    if config.logging.log_file:
        return Path(config.logging.log_file).expanduser()
    return get_data_dir() / "mpd-minion.log"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# MPD Minion Configuration

[connection]
# MPD host name, or absolute path of MPD's Unix socket
host = "localhost"

# MPD port (ignored for Unix sockets)
port = 6600

# Password for servers that require authentication
# password = "secret"

# Transport read/write timeout in seconds
timeout = 10.0

# Delay between connection attempts in seconds
reconnect_interval = 3.0

# How often to refresh the playback position, in seconds
heartbeat_interval = 1.0

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/mpd-minion/mpd-minion.log)
# log_file = "/path/to/custom/mpd-minion.log"

# Also output logs to stderr (useful for debugging)
console_output = false
""".strip()


def parse_mpd_host(value: str) -> tuple[Optional[str], str]:
    """Split an MPD_HOST value into (password, host).

    MPD clients accept the ``password@host`` form. A leading ``@`` denotes an
    abstract socket and is not treated as a password separator.

    Example:
        "secret@music.lan" -> ("secret", "music.lan")
        "/run/mpd/socket" -> (None, "/run/mpd/socket")
    """
    if "@" in value and not value.startswith("@"):
        password, host = value.rsplit("@", 1)
        return password or None, host
    return None, value


def apply_environment(config: Config) -> Config:
    """Override connection settings from the conventional MPD variables.

    - MPD_HOST (optionally ``password@host``)
    - MPD_PORT
    """
    mpd_host = os.environ.get("MPD_HOST")
    if mpd_host:
        password, host = parse_mpd_host(mpd_host)
        config.connection.host = host
        if password:
            config.connection.password = password

    mpd_port = os.environ.get("MPD_PORT")
    if mpd_port:
        try:
            config.connection.port = int(mpd_port)
        except ValueError:
            print(f"Warning: Ignoring invalid MPD_PORT value: {mpd_port!r}")

    return config


def _parse_connection(
    connection_data: dict, defaults: ConnectionConfig
) -> ConnectionConfig:
    """Build a ConnectionConfig from the [connection] TOML table."""
    return ConnectionConfig(
        host=connection_data.get("host", defaults.host),
        port=int(connection_data.get("port", defaults.port)),
        password=connection_data.get("password") or None,
        timeout=float(connection_data.get("timeout", defaults.timeout)),
        reconnect_interval=float(
            connection_data.get("reconnect_interval", defaults.reconnect_interval)
        ),
        heartbeat_interval=float(
            connection_data.get("heartbeat_interval", defaults.heartbeat_interval)
        ),
    )


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - MPD_HOST
    - MPD_PORT
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        return apply_environment(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        return apply_environment(Config())

    config = Config()

    if "connection" in toml_data:
        connection_data = toml_data["connection"]
        try:
            config.connection = _parse_connection(connection_data, config.connection)
        except (TypeError, ValueError) as e:
            print(f"Warning: Invalid connection configuration: {e}")
            print("Using default connection configuration.")

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    config = apply_environment(config)

    try:
        config.connection.validate()
    except ValueError as e:
        print(f"Warning: Invalid connection configuration: {e}")
        print("Using default connection configuration.")
        config.connection = apply_environment(Config()).connection

    return config


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
