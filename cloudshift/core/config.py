# ============================================================================
# CloudShift -- Configuration (cloudshift/core/config.py)
# ============================================================================
#
# WHAT THIS FILE DOES:
#   The "single source of truth" for every setting in CloudShift.
#
# HOW IT WORKS:
#   1. Python dataclasses define every setting with a sensible default
#   2. A YAML file (config/default_config.yaml) can override those defaults
#   3. Environment variables can override YAML (for machine-specific paths)
#   4. Command-line flags (tools/migrate.py) override everything
#
#   Priority: CLI flags > env vars > YAML file > hardcoded defaults
#
# TWO SHAPES OF THE SAME SETTINGS:
#   Config       -- mutable, mirrors the YAML sections, used while the
#                   settings are being assembled and validated
#   RunSettings  -- frozen, flat, validated. This is what the migration
#                   core receives. Nothing in the per-file pipeline ever
#                   reads YAML, env vars or prompts, so the pipeline can
#                   be tested with nothing but temp folders.
#
# USAGE:
#   from cloudshift.core.config import load_config, build_run_settings
#   config = load_config(".")
#   settings = build_run_settings(config)      # raises ConfigurationError
#   print(settings.dehydrate_mode)             # DehydrateMode.HYDRATED_ONLY
# ============================================================================

from __future__ import annotations

import dataclasses
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, List, Optional

import yaml

from .copier import DEFAULT_BUFFER_SIZE
from .exceptions import ConfigurationError
from .hydration import DEFAULT_INITIAL_DELAY, DEFAULT_MAX_DELAY, DEFAULT_TIMEOUT_SECONDS
from .models import DehydrateMode
from .path_resolver import DEFAULT_MAX_PATH_LENGTH

# Sync-client bookkeeping files. They belong to the folder they sit in and
# must not be carried over to another cloud's tree.
DEFAULT_SKIP_NAMES: List[str] = [
    "desktop.ini", "thumbs.db", ".ds_store",
    ".dropbox", ".dropbox.attr", ".dropbox.cache",
    "icon\r",
]


def _clean_path(path: str) -> str:
    if not path:
        return path
    return os.path.normpath(os.path.expanduser(os.path.expandvars(path)))


# -------------------------------------------------------------------
# Sub-configs: each one maps to a section in the YAML file
# -------------------------------------------------------------------

@dataclass
class PathsConfig:
    """
    Where files come from and where they go.

    Environment variables (CLOUDSHIFT_SOURCE_ROOT, CLOUDSHIFT_DEST_ROOT)
    win over YAML because these paths differ per machine and per user
    profile, and you don't want to commit them to git.
    """
    source_root: str = ""
    dest_root: str = ""

    def __post_init__(self) -> None:
        src_env = os.getenv("CLOUDSHIFT_SOURCE_ROOT")
        if src_env:
            self.source_root = src_env
        dst_env = os.getenv("CLOUDSHIFT_DEST_ROOT")
        if dst_env:
            self.dest_root = dst_env
        self.source_root = _clean_path(self.source_root)
        self.dest_root = _clean_path(self.dest_root)


@dataclass
class MigrationConfig:
    """
    Per-run behavior of the migration pipeline.

    hydrate_timeout_seconds is per FILE. 30 minutes covers a multi-GB
    video on a slow home connection; lower it if you'd rather fail fast
    and re-run later.
    """
    dehydrate_mode: str = "hydrated-only"   # hydrated-only | all | none
    skip_names: List[str] = field(default_factory=lambda: list(DEFAULT_SKIP_NAMES))
    max_path_length: int = DEFAULT_MAX_PATH_LENGTH
    hydrate_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    poll_initial_seconds: float = DEFAULT_INITIAL_DELAY
    poll_max_seconds: float = DEFAULT_MAX_DELAY
    copy_buffer_bytes: int = DEFAULT_BUFFER_SIZE
    preserve_timestamps: bool = True

    def __post_init__(self) -> None:
        env_mode = os.getenv("CLOUDSHIFT_DEHYDRATE_MODE")
        if env_mode:
            self.dehydrate_mode = env_mode.strip()
        env_timeout = os.getenv("CLOUDSHIFT_HYDRATE_TIMEOUT")
        if env_timeout:
            try:
                self.hydrate_timeout_seconds = float(env_timeout)
            except ValueError:
                # Kept as text; validate_config() reports it
                self.hydrate_timeout_seconds = env_timeout.strip()


@dataclass
class LoggingConfig:
    """Where log files go and how chatty the console is."""
    log_dir: str = "logs"
    console_level: str = "WARNING"


@dataclass
class Config:
    """
    Master configuration object for CloudShift.

    Example:
        config = load_config(".")
        print(config.paths.source_root)          # "C:\\Users\\me\\OneDrive"
        print(config.migration.dehydrate_mode)   # "hydrated-only"
    """
    paths: PathsConfig = field(default_factory=PathsConfig)
    migration: MigrationConfig = field(default_factory=MigrationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@dataclass(frozen=True)
class RunSettings:
    """
    Immutable, validated inputs for one migration run.

    Built by build_run_settings(); the orchestrator never sees Config.
    """
    source_root: str
    dest_root: str
    dehydrate_mode: DehydrateMode = DehydrateMode.HYDRATED_ONLY
    skip_names: FrozenSet[str] = frozenset()
    max_path_length: int = DEFAULT_MAX_PATH_LENGTH
    hydrate_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    poll_initial_seconds: float = DEFAULT_INITIAL_DELAY
    poll_max_seconds: float = DEFAULT_MAX_DELAY
    copy_buffer_bytes: int = DEFAULT_BUFFER_SIZE
    preserve_timestamps: bool = True


# -------------------------------------------------------------------
# Helper: YAML dict -> dataclass (with safety net)
# -------------------------------------------------------------------

def _dict_to_dataclass(cls, data: dict):
    """
    Build a dataclass from a dictionary, ignoring unknown keys.

    SAFETY NET:
      A YAML key that does NOT match any field name prints a loud
      warning to stderr, with a suggestion when one name contains the
      other ("timeout" vs "hydrate_timeout_seconds"). Otherwise a typo
      silently falls back to the default and you find out three hours
      into a run.
    """
    known_fields = {f.name for f in dataclasses.fields(cls)}

    filtered = {}
    for k, v in (data or {}).items():
        if k in known_fields:
            filtered[k] = v
        else:
            suggestion = ""
            for field_name in known_fields:
                if k in field_name or field_name in k:
                    suggestion = " Did you mean '" + field_name + "'?"
                    break
            print(
                "  [WARN] config/" + cls.__name__ + ": YAML key '"
                + str(k) + "' is not a recognized setting"
                + " -- IGNORED (using default)." + suggestion,
                file=sys.stderr,
            )

    return cls(**filtered)


# -------------------------------------------------------------------
# Main entry point: load_config()
# -------------------------------------------------------------------

def load_config(
    project_dir: str = ".",
    config_filename: str = "default_config.yaml",
) -> Config:
    """
    Load configuration from <project_dir>/config/<config_filename>.

    A missing file is not an error: every setting has a default, and
    the roots usually come from env vars or the command line.
    """
    config_path = Path(project_dir) / "config" / config_filename

    yaml_data: dict = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                yaml_data = raw

    return Config(
        paths=_dict_to_dataclass(PathsConfig, yaml_data.get("paths", {})),
        migration=_dict_to_dataclass(MigrationConfig, yaml_data.get("migration", {})),
        logging=_dict_to_dataclass(LoggingConfig, yaml_data.get("logging", {})),
    )


def _is_inside(child: str, parent: str) -> bool:
    c = os.path.normcase(os.path.abspath(child)).lower()
    p = os.path.normcase(os.path.abspath(parent)).lower().rstrip("\\/")
    return c == p or c.startswith(p + os.sep)


def validate_config(config: Config) -> List[str]:
    """
    Check a Config object for problems. Returns a list of error messages.
    Empty list = everything is valid.
    """
    errors: List[str] = []
    paths = config.paths
    mig = config.migration

    if not paths.source_root:
        errors.append("paths.source_root is empty. Use --source or CLOUDSHIFT_SOURCE_ROOT.")
    elif not os.path.isabs(paths.source_root):
        errors.append("paths.source_root must be absolute: '" + paths.source_root + "'")

    if not paths.dest_root:
        errors.append("paths.dest_root is empty. Use --dest or CLOUDSHIFT_DEST_ROOT.")
    elif not os.path.isabs(paths.dest_root):
        errors.append("paths.dest_root must be absolute: '" + paths.dest_root + "'")

    if (paths.source_root and paths.dest_root
            and os.path.isabs(paths.source_root) and os.path.isabs(paths.dest_root)):
        if (_is_inside(paths.dest_root, paths.source_root)
                or _is_inside(paths.source_root, paths.dest_root)):
            errors.append(
                "paths.source_root and paths.dest_root must not be the same "
                "folder or nested inside each other."
            )

    try:
        DehydrateMode.parse(mig.dehydrate_mode)
    except ValueError as e:
        errors.append(str(e))

    # Numbers may arrive as text from env vars or a quoted YAML value
    numbers = {}
    for name in _NUMERIC_FIELDS:
        value = getattr(mig, name)
        number = _as_number(value)
        if number is None:
            errors.append("migration." + name + " must be a number: " + repr(value))
        elif number <= 0:
            errors.append("migration." + name + " must be positive: " + str(value))
        else:
            numbers[name] = number

    if ("poll_initial_seconds" in numbers and "poll_max_seconds" in numbers
            and numbers["poll_initial_seconds"] > numbers["poll_max_seconds"]):
        errors.append("migration.poll_initial_seconds must not exceed poll_max_seconds.")

    return errors


_NUMERIC_FIELDS = (
    "max_path_length", "hydrate_timeout_seconds",
    "poll_initial_seconds", "poll_max_seconds", "copy_buffer_bytes",
)


def _as_number(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def build_run_settings(config: Config) -> RunSettings:
    """Validate config and freeze it into RunSettings."""
    problems = validate_config(config)
    if problems:
        raise ConfigurationError(problems)

    mig = config.migration
    return RunSettings(
        source_root=os.path.abspath(config.paths.source_root),
        dest_root=os.path.abspath(config.paths.dest_root),
        dehydrate_mode=DehydrateMode.parse(mig.dehydrate_mode),
        skip_names=frozenset(n.lower() for n in mig.skip_names),
        max_path_length=int(mig.max_path_length),
        hydrate_timeout_seconds=float(mig.hydrate_timeout_seconds),
        poll_initial_seconds=float(mig.poll_initial_seconds),
        poll_max_seconds=float(mig.poll_max_seconds),
        copy_buffer_bytes=int(mig.copy_buffer_bytes),
        preserve_timestamps=bool(mig.preserve_timestamps),
    )
