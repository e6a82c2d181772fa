"""Configuration loading and management."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_MAX_STORED_CHARS = 50000


@dataclass
class ExportConfig:
    target_provider: str = "generic"
    compression_level: str = "medium"
    include_metadata: bool = True
    role_icons: bool = False
    output_dir: Path = field(default_factory=lambda: Path.home() / "context-porter" / "exports")


@dataclass
class HistoryConfig:
    state_db: Path = field(default_factory=lambda: Path.home() / "context-porter" / "state" / "exports.db")
    max_stored_chars: int = DEFAULT_MAX_STORED_CHARS


@dataclass
class Config:
    export: ExportConfig = field(default_factory=ExportConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    log_dir: Path = field(default_factory=lambda: Path.home() / "context-porter" / "logs")


def expand_env_var(value: str) -> str:
    """Expand environment variables in string (e.g. ${VAR})."""
    if value.startswith("${") and value.endswith("}"):
        env_var = value[2:-1]
        return os.environ.get(env_var, value)
    return value


def expand_path(path_str: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expandvars(os.path.expanduser(path_str)))


def default_search_paths() -> list[Path]:
    """Standard locations checked for config.yaml, in priority order."""
    return [
        Path.cwd() / "config.yaml",
        Path.home() / ".config" / "context-porter" / "config.yaml",
        Path("/etc/context-porter/config.yaml"),
    ]


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from YAML file."""
    if config_path is None:
        for path in default_search_paths():
            if path.exists():
                config_path = path
                break

    if config_path is None or not config_path.exists():
        return Config()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    # Parse export defaults
    export_data = data.get("export", {}) or {}
    export = ExportConfig(
        target_provider=expand_env_var(str(export_data.get("target_provider", "generic"))),
        compression_level=expand_env_var(str(export_data.get("compression_level", "medium"))),
        include_metadata=bool(export_data.get("include_metadata", True)),
        role_icons=bool(export_data.get("role_icons", False)),
        output_dir=expand_path(export_data.get("output_dir", "~/context-porter/exports")),
    )

    # Parse history store config
    history_data = data.get("history", {}) or {}
    history = HistoryConfig(
        state_db=expand_path(history_data.get("state_db", "~/context-porter/state/exports.db")),
        max_stored_chars=int(history_data.get("max_stored_chars", DEFAULT_MAX_STORED_CHARS)),
    )

    return Config(
        export=export,
        history=history,
        log_dir=expand_path(data.get("log_dir", "~/context-porter/logs")),
    )
