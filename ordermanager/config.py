"""Configuration module for ordermanager."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_CONFIG_PATH = Path("config.toml")

_DIRECTORY_KEYS = {
    "source_dir": ("source_dir", "sourceDir"),
    "target_dir": ("target_dir", "targetDir"),
    "archive_dir": ("archive_dir", "archiveDir"),
}


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded or is invalid."""


class DirectoryCreateError(Exception):
    """Raised when one of the configured directories cannot be created."""


@dataclass
class WatcherConfig:
    poll_interval: float = 0.5


@dataclass
class Config:
    source_dir: Path
    target_dir: Path
    archive_dir: Path
    watcher: WatcherConfig = field(default_factory=WatcherConfig)

    def __post_init__(self) -> None:
        self.source_dir = Path(self.source_dir).expanduser()
        self.target_dir = Path(self.target_dir).expanduser()
        self.archive_dir = Path(self.archive_dir).expanduser()

    @property
    def directories(self) -> dict[str, Path]:
        return {
            "source": self.source_dir,
            "target": self.target_dir,
            "archive": self.archive_dir,
        }

    def validate(self) -> None:
        """Check that the three directory roles are distinct and not nested."""
        seen: dict[Path, str] = {}
        for role, path in self.directories.items():
            resolved = path.resolve()
            if resolved in seen:
                raise ConfigError(
                    f"The {seen[resolved]} and {role} directories must differ: {path}"
                )
            seen[resolved] = role

        for inner, inner_role in seen.items():
            for outer, outer_role in seen.items():
                if inner != outer and inner.is_relative_to(outer):
                    raise ConfigError(
                        f"The {inner_role} directory must not be inside the "
                        f"{outer_role} directory: {inner}"
                    )

        if self.watcher.poll_interval <= 0:
            raise ConfigError("watcher.poll_interval must be positive")

    def ensure_directories(self) -> None:
        for role, path in self.directories.items():
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryCreateError(
                    f"Could not create {role} directory {path}: {e}"
                ) from e


def load_config(path: Path = DEFAULT_CONFIG_PATH, **overrides: Path | None) -> Config:
    """Load a Config from a TOML file.

    Keyword overrides (``source_dir``, ``target_dir``, ``archive_dir``) take
    precedence over file values. When all three are given the file is optional.
    """
    given = {key: value for key, value in overrides.items() if value is not None}
    unknown = set(given) - set(_DIRECTORY_KEYS)
    if unknown:
        raise TypeError(f"Unknown override(s): {', '.join(sorted(unknown))}")

    data: dict = {}
    if len(given) < len(_DIRECTORY_KEYS) or path.exists():
        data = _read_toml(path)

    values: dict[str, Path] = {}
    for key, aliases in _DIRECTORY_KEYS.items():
        if key in given:
            values[key] = Path(given[key])
            continue
        values[key] = _directory_value(data, key, aliases, path)

    watcher = _watcher_config(data.get("watcher", {}), path)
    config = Config(watcher=watcher, **values)
    config.validate()
    return config


def _read_toml(path: Path) -> dict:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid configuration file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read configuration file {path}: {e}") from e


def _directory_value(data: dict, key: str, aliases: tuple[str, ...], path: Path) -> Path:
    for alias in aliases:
        if alias in data:
            value = data[alias]
            if not isinstance(value, str) or not value:
                raise ConfigError(f"'{alias}' in {path} must be a non-empty string")
            return Path(value)
    raise ConfigError(f"Missing '{key}' in {path}")


def _watcher_config(table: object, path: Path) -> WatcherConfig:
    if not isinstance(table, dict):
        raise ConfigError(f"[watcher] in {path} must be a table")

    config = WatcherConfig()
    if "poll_interval" in table:
        value = table["poll_interval"]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"watcher.poll_interval in {path} must be a number")
        config.poll_interval = float(value)
    return config
