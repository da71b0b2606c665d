"""Configuration system for proc-census."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit

VALID_LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass
class CensusConfig:
    """Process source selection.

    With neither flag set, Linux reads procfs and every other platform runs ps.
    """

    force_ps: bool = False  # Always run ps, even on Linux
    force_proc: bool = False  # Always read procfs, even off Linux
    proc_root: str = "/proc"
    ps_command: list[str] = field(default_factory=lambda: ["ps", "axo", "state="])
    ps_timeout: float = 0.0  # Seconds; 0 waits for ps indefinitely


@dataclass
class LoggingConfig:
    """Log file configuration."""

    level: str = "info"
    json_file: bool = True  # Write JSON Lines to log_path
    log_max_bytes: int = 5 * 1024 * 1024  # Max log file size (5MB)
    log_backup_count: int = 3  # Number of backup log files to keep


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    census: CensusConfig = field(default_factory=CensusConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "proc-census"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "proc-census"

    @property
    def log_path(self) -> Path:
        """JSON log path."""
        return self.state_dir / "census.log"

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("census", "logging"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        All defaults come from the dataclass definitions - no hardcoded values here.

        Raises:
            ValueError: If the file isn't valid TOML or holds invalid values.
        """
        defaults = cls()
        path = path or defaults.config_path

        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            census=_load_census_config(data.get("census", {})),
            logging=_load_logging_config(data.get("logging", {})),
        )


def _require_bool(data: dict, key: str, default: bool) -> bool:
    """Return a boolean setting, rejecting strings and numbers."""
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false, got {value!r}")
    return value


def _load_census_config(data: dict) -> CensusConfig:
    """Load census config from TOML data, using dataclass defaults for missing fields."""
    defaults = CensusConfig()

    force_ps = _require_bool(data, "force_ps", defaults.force_ps)
    force_proc = _require_bool(data, "force_proc", defaults.force_proc)
    if force_ps and force_proc:
        raise ValueError("force_ps and force_proc can't both be enabled")

    ps_command = data.get("ps_command", defaults.ps_command)
    if not isinstance(ps_command, list) or not all(isinstance(arg, str) for arg in ps_command):
        raise ValueError(f"ps_command must be an array of strings, got {ps_command!r}")
    if not ps_command:
        raise ValueError("ps_command must not be empty")
    ps_command = [str(arg) for arg in ps_command]

    ps_timeout = float(data.get("ps_timeout", defaults.ps_timeout))
    if ps_timeout < 0:
        raise ValueError(f"ps_timeout must be >= 0, got {ps_timeout}")

    return CensusConfig(
        force_ps=force_ps,
        force_proc=force_proc,
        proc_root=str(data.get("proc_root", defaults.proc_root)),
        ps_command=ps_command,
        ps_timeout=ps_timeout,
    )


def _load_logging_config(data: dict) -> LoggingConfig:
    """Load logging config from TOML data, using dataclass defaults for missing fields."""
    defaults = LoggingConfig()

    level = str(data.get("level", defaults.level)).lower()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid level: {level!r}. Must be one of {VALID_LOG_LEVELS}")

    return LoggingConfig(
        level=level,
        json_file=_require_bool(data, "json_file", defaults.json_file),
        log_max_bytes=data.get("log_max_bytes", defaults.log_max_bytes),
        log_backup_count=data.get("log_backup_count", defaults.log_backup_count),
    )
