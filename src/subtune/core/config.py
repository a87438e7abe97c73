"""
Configuration management for Subtune
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

# Action name -> key. Values are single characters or blessed key names.
DEFAULT_KEYS: Dict[str, str] = {
    "search": "/",
    "search_next": "n",
    "search_prev": "N",
    "refresh": "r",
    "add": "a",
    "star": "y",
    "new_playlist": "c",
    "add_to_playlist": "A",
    "delete_playlist": "d",
    "remove_from_queue": "d",
    "page_browser": "1",
    "page_queue": "2",
    "page_playlists": "3",
    "page_log": "7",
    "play_next_track": "8",
    "play_prev_track": "9",
    "quit": "q",
    "add_random_songs": "s",
    "clear_queue": "D",
    "play_pause": "p",
    "stop": "x",
    "volume_down": "-",
    "volume_up": "=",
    "seek_forward": ".",
    "seek_back": ",",
    "up": "k",
    "down": "j",
    "left": "h",
    "right": "l",
    "select": "KEY_ENTER",
}

# (section, key) pairs that must be present for the client to start
REQUIRED_PROPERTIES = [
    ("auth", "username"),
    ("auth", "password"),
    ("server", "host"),
]


@dataclass
class AuthConfig:
    """Credentials for the Subsonic server."""

    username: str = ""
    password: str = ""
    plaintext: bool = False  # Send hex-encoded password instead of token auth


@dataclass
class ServerConfig:
    """Configuration for the Subsonic server."""

    host: str = ""
    scrobble: bool = False
    random_songs: int = 50  # Songs fetched by the add-random-songs key


@dataclass
class PlayerConfig:
    """Configuration for music player settings."""

    mpv_socket_path: Optional[str] = None
    volume: int = 50
    ipc_timeout: float = 2.0  # Seconds to wait for an mpv reply
    volume_step: int = 5
    seek_step: int = 10  # Seconds


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/subtune/subtune.log)
    )


@dataclass
class KeysConfig:
    """Keybindings, by action name."""

    bindings: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_KEYS))

    def key_for(self, action: str) -> str:
        return self.bindings.get(action, DEFAULT_KEYS.get(action, ""))


@dataclass
class Config:
    """Main configuration object."""

    auth: AuthConfig = field(default_factory=AuthConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    keys: KeysConfig = field(default_factory=KeysConfig)
    path: Optional[Path] = None  # File this config was read from

    def missing_required(self) -> List[str]:
        """Return dotted names of required properties that are empty."""
        missing = []
        for section, key in REQUIRED_PROPERTIES:
            if not getattr(getattr(self, section), key):
                missing.append(f"{section}.{key}")
        return missing


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "subtune"
    return Path.home() / ".config" / "subtune"


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
    3. XDG_CONFIG_HOME/subtune (or ~/.config/subtune)
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
        return Path(data_home) / "subtune"
    return Path.home() / ".local" / "share" / "subtune"


def get_log_path(config: Config) -> Path:
    if config.logging.log_file:
        return Path(config.logging.log_file)
    return get_data_dir() / "subtune.log"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    keys = "\n".join(f'{action} = "{key}"' for action, key in DEFAULT_KEYS.items())
    return f"""
# Subtune Configuration

[auth]
# Subsonic account (SUBTUNE_USERNAME / SUBTUNE_PASSWORD override these)
username = ""
password = ""

# Send the password hex-encoded instead of using token auth (old servers)
plaintext = false

[server]
# Server URL, e.g. "https://music.example.com" (SUBTUNE_HOST overrides this)
host = ""

# Report plays to the server
scrobble = false

# Number of songs added by the random songs key
random_songs = 50

[player]
# Path for mpv socket (auto-detected if not specified)
# mpv_socket_path = "/tmp/subtune-mpv"

# Default volume (0-100)
volume = 50

# Seconds to wait for mpv to answer a command
ipc_timeout = 2.0

# Volume change per key press
volume_step = 5

# Seek distance in seconds
seek_step = 10

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/subtune/subtune.log)
# log_file = "/path/to/custom/subtune.log"

[keys]
{keys}
""".strip()


def _parse(toml_data: dict) -> Config:
    config = Config()

    if "auth" in toml_data:
        auth_data = toml_data["auth"]
        config.auth = AuthConfig(
            username=auth_data.get("username", config.auth.username),
            password=auth_data.get("password", config.auth.password),
            plaintext=auth_data.get("plaintext", config.auth.plaintext),
        )

    if "server" in toml_data:
        server_data = toml_data["server"]
        config.server = ServerConfig(
            host=server_data.get("host", config.server.host),
            scrobble=server_data.get("scrobble", config.server.scrobble),
            random_songs=server_data.get(
                "random_songs", config.server.random_songs
            ),
        )

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            mpv_socket_path=player_data.get("mpv_socket_path"),
            volume=player_data.get("volume", config.player.volume),
            ipc_timeout=float(
                player_data.get("ipc_timeout", config.player.ipc_timeout)
            ),
            volume_step=player_data.get("volume_step", config.player.volume_step),
            seek_step=player_data.get("seek_step", config.player.seek_step),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
        )

    if "keys" in toml_data:
        bindings = dict(DEFAULT_KEYS)
        for action, key in toml_data["keys"].items():
            if action in DEFAULT_KEYS and isinstance(key, str) and key:
                bindings[action] = key
            else:
                print(f"Warning: Ignoring unknown or empty keybinding: {action}")
        config.keys = KeysConfig(bindings=bindings)

    return config


def _apply_env_overrides(config: Config) -> None:
    """Override credentials and host with environment variables if present."""
    username = os.environ.get("SUBTUNE_USERNAME")
    password = os.environ.get("SUBTUNE_PASSWORD")
    host = os.environ.get("SUBTUNE_HOST")

    if username:
        config.auth.username = username
    if password:
        config.auth.password = password
    if host:
        config.server.host = host


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - SUBTUNE_USERNAME
    - SUBTUNE_PASSWORD
    - SUBTUNE_HOST
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        config = Config()
    else:
        try:
            with open(config_path, "rb") as f:
                toml_data = tomllib.load(f)
            config = _parse(toml_data)
        except (OSError, tomllib.TOMLDecodeError) as e:
            print(f"Error loading configuration from {config_path}: {e}")
            print("Using default configuration.")
            config = Config()

    _apply_env_overrides(config)
    config.path = config_path
    return config
