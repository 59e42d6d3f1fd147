"""Runtime configuration management with environment variable and file support.

This module provides the RuntimeConfig system for managing application configuration
from multiple sources: defaults, config files (YAML/TOML), environment variables,
and CLI flags. Configuration precedence: CLI flags > env vars > config file > defaults.
"""

import logging
import os
import sys
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any

from promise_rejection_fixer.analysis.classifier import DEFAULT_CATCH_LOOKAHEAD
from promise_rejection_fixer.analysis.synthesizer import (
    DEFAULT_NOOP_HANDLER,
    DEFAULT_STATEMENT_TERMINATOR,
)
from promise_rejection_fixer.config.exceptions import ConfigError
from promise_rejection_fixer.core.models import HANDLER_CALL
from promise_rejection_fixer.utils.text import is_js_identifier

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx")


class ApplicationMode(str, Enum):
    """Application execution modes.

    Attributes:
        APPLY: Write synthesized rejection handlers back to the source files.
        DRY_RUN: Report the edits that would be made without writing anything.
    """

    APPLY = "apply"
    DRY_RUN = "dry-run"

    def __str__(self) -> str:
        """Return string representation of mode."""
        return self.value


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """Runtime configuration for the promise rejection fixer.

    This immutable configuration dataclass manages application settings from multiple
    sources with proper precedence. All fields are validated during initialization.

    Attributes:
        mode: Application execution mode (apply, dry-run).
        create_backup: Copy each file to ``<name>.backup`` before rewriting it.
        noop_handler: Identifier of the do-nothing function passed to ``.catch``.
        statement_terminator: Character appended after the inserted catch clause
            unless the call is already followed by it.
        catch_lookahead: Characters after a call's closing parenthesis searched for a
            chained ``.catch(``.
        extensions: File suffixes picked up when a directory is given.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to log file. If None, logs to stderr only.

    Example:
        >>> config = RuntimeConfig.from_env()
        >>> config = config.merge_with_cli(mode=ApplicationMode.DRY_RUN, noop_handler="ignore")
        >>> print(f"Mode: {config.mode}, Handler: {config.noop_handler}")
        Mode: dry-run, Handler: ignore
    """

    mode: ApplicationMode
    create_backup: bool
    log_level: str
    log_file: str | None
    noop_handler: str = DEFAULT_NOOP_HANDLER
    statement_terminator: str = DEFAULT_STATEMENT_TERMINATOR
    catch_lookahead: int = DEFAULT_CATCH_LOOKAHEAD
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS

    def __post_init__(self) -> None:
        """Validate configuration after initialization.

        Raises:
            ConfigError: If any configuration value is invalid.
        """
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level not in valid_levels:
            raise ConfigError(f"Invalid log level: {self.log_level}. Must be one of {valid_levels}")

        if not isinstance(self.mode, ApplicationMode):
            raise ConfigError(f"mode must be ApplicationMode enum, got {type(self.mode).__name__}")

        # The audit counts inserted handlers instead of re-scanning the edited text,
        # so the inserted clause must never contain a chain marker.
        if not is_js_identifier(self.noop_handler):
            raise ConfigError(
                f"noop_handler must be a plain identifier, got '{self.noop_handler}'"
            )

        if len(self.statement_terminator) != 1:
            raise ConfigError(
                f"statement_terminator must be a single character, "
                f"got '{self.statement_terminator}'"
            )

        if self.catch_lookahead < 0:
            raise ConfigError(f"catch_lookahead must be >= 0, got {self.catch_lookahead}")
        if self.catch_lookahead < len(HANDLER_CALL):
            logger.warning(
                f"catch_lookahead={self.catch_lookahead} is shorter than '{HANDLER_CALL}'. "
                f"Chained catch handlers will never be detected."
            )

        if not self.extensions:
            raise ConfigError("extensions must not be empty")
        for extension in self.extensions:
            if not extension.startswith(".") or len(extension) < 2:
                raise ConfigError(f"Invalid extension '{extension}'. Must look like '.js'")

    @classmethod
    def from_defaults(cls) -> "RuntimeConfig":
        """Create configuration with default values.

        Returns:
            RuntimeConfig with safe default values.

        Example:
            >>> config = RuntimeConfig.from_defaults()
            >>> assert config.mode == ApplicationMode.APPLY
            >>> assert config.noop_handler == "noop"
        """
        return cls(
            mode=ApplicationMode.APPLY,
            create_backup=False,
            log_level="INFO",
            log_file=None,
        )

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Create configuration from environment variables.

        Loads configuration from environment variables with PRF_ prefix:
        - PRF_MODE: Application mode (default: "apply")
        - PRF_BACKUP: Create backups before rewriting (default: "false")
        - PRF_NOOP_HANDLER: No-op handler identifier (default: "noop")
        - PRF_STATEMENT_TERMINATOR: Statement terminator (default: ";")
        - PRF_CATCH_LOOKAHEAD: Chained catch lookahead window (default: "20")
        - PRF_EXTENSIONS: Comma-separated file suffixes (default: ".js,.jsx,.mjs,.cjs,.ts,.tsx")
        - PRF_LOG_LEVEL: Logging level (default: "INFO")
        - PRF_LOG_FILE: Log file path (default: None)

        Returns:
            RuntimeConfig loaded from environment variables.

        Raises:
            ConfigError: If environment variable has invalid value.

        Example:
            >>> os.environ["PRF_MODE"] = "dry-run"
            >>> config = RuntimeConfig.from_env()
            >>> assert config.mode == ApplicationMode.DRY_RUN
        """
        defaults = cls.from_defaults()

        mode_str = os.getenv("PRF_MODE", defaults.mode.value).lower()
        try:
            mode = ApplicationMode(mode_str)
        except ValueError as e:
            valid_modes = [m.value for m in ApplicationMode]
            raise ConfigError(f"Invalid PRF_MODE='{mode_str}'. Must be one of {valid_modes}") from e

        def parse_bool(env_var: str, default: bool) -> bool:
            """Parse boolean environment variable."""
            value = os.getenv(env_var, str(default)).lower()
            if value in ("true", "1", "yes", "on"):
                return True
            if value in ("false", "0", "no", "off"):
                return False
            raise ConfigError(
                f"Invalid {env_var}='{value}'. Must be true/false, 1/0, yes/no, or on/off"
            )

        def parse_int(env_var: str, default: int, min_value: int = 0) -> int:
            """Parse integer environment variable."""
            value_str = os.getenv(env_var, str(default))
            try:
                value = int(value_str)
            except ValueError as e:
                raise ConfigError(f"Invalid {env_var}='{value_str}'. Must be an integer") from e
            if value < min_value:
                raise ConfigError(f"{env_var}={value} must be >= {min_value}")
            return value

        extensions_str = os.getenv("PRF_EXTENSIONS")
        extensions = (
            _parse_extensions(extensions_str.split(","))
            if extensions_str
            else defaults.extensions
        )

        return cls(
            mode=mode,
            create_backup=parse_bool("PRF_BACKUP", defaults.create_backup),
            log_level=os.getenv("PRF_LOG_LEVEL", defaults.log_level).upper(),
            log_file=os.getenv("PRF_LOG_FILE") or defaults.log_file,
            noop_handler=os.getenv("PRF_NOOP_HANDLER", defaults.noop_handler),
            statement_terminator=os.getenv(
                "PRF_STATEMENT_TERMINATOR", defaults.statement_terminator
            ),
            catch_lookahead=parse_int("PRF_CATCH_LOOKAHEAD", defaults.catch_lookahead),
            extensions=extensions,
        )

    @classmethod
    def from_file(cls, config_path: Path) -> "RuntimeConfig":
        """Load configuration from YAML or TOML file.

        Supports both YAML (.yaml, .yml) and TOML (.toml) formats.

        Args:
            config_path: Path to configuration file (YAML or TOML).

        Returns:
            RuntimeConfig loaded from file.

        Raises:
            ConfigError: If file doesn't exist, has invalid format, or contains invalid values.

        Example:
            >>> config = RuntimeConfig.from_file(Path("promise-fixer.yaml"))
        """
        try:
            config_path = Path(config_path).resolve()
        except (OSError, ValueError) as e:
            raise ConfigError(f"Invalid config file path: {e}") from e

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        if not config_path.is_file():
            raise ConfigError(f"Config path is not a file: {config_path}")

        suffix = config_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            return cls._load_from_yaml(config_path)
        elif suffix == ".toml":
            return cls._load_from_toml(config_path)
        else:
            raise ConfigError(
                f"Unsupported config file format: {suffix}. Must be .yaml, .yml, or .toml"
            )

    @classmethod
    def _load_from_yaml(cls, config_path: Path) -> "RuntimeConfig":
        """Load configuration from YAML file.

        Raises:
            ConfigError: If YAML is malformed or contains invalid values.
        """
        try:
            import yaml
        except ImportError as e:
            raise ConfigError("PyYAML not installed. Install with: pip install pyyaml") from e

        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping/dict, got {type(data).__name__}")

        return cls._from_dict(data, config_path)

    @classmethod
    def _load_from_toml(cls, config_path: Path) -> "RuntimeConfig":
        """Load configuration from TOML file.

        Raises:
            ConfigError: If TOML is malformed or contains invalid values.
        """
        # Python 3.11+ has tomllib built-in, otherwise use tomli
        if sys.version_info >= (3, 11):  # noqa: UP036
            import tomllib
        else:
            try:
                import tomli as tomllib  # type: ignore[no-redef]
            except ImportError as e:
                raise ConfigError("tomli not installed. Install with: pip install tomli") from e

        try:
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        except Exception as e:  # tomllib can raise various exceptions
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

        return cls._from_dict(data, config_path)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], source: Path) -> "RuntimeConfig":
        """Create RuntimeConfig from dictionary (internal helper).

        Args:
            data: Dictionary with configuration values.
            source: Source file path (for error messages).

        Returns:
            RuntimeConfig from dictionary.

        Raises:
            ConfigError: If dictionary contains invalid values.
        """
        defaults = cls.from_defaults()

        mode_value = data.get("mode", defaults.mode.value)
        try:
            mode = ApplicationMode(mode_value)
        except ValueError as e:
            valid_modes = [m.value for m in ApplicationMode]
            raise ConfigError(
                f"Invalid mode '{mode_value}' in {source}. Must be one of {valid_modes}"
            ) from e

        backup = data.get("backup", {})
        if isinstance(backup, dict):
            create_backup = backup.get("enabled", defaults.create_backup)
        elif isinstance(backup, bool):
            create_backup = backup
        else:
            raise ConfigError(f"Invalid backup type in {source}: {type(backup).__name__}")

        fix = data.get("fix", {})
        if not isinstance(fix, dict):
            raise ConfigError(f"Invalid fix type in {source}: {type(fix).__name__}")
        noop_handler = fix.get("noop_handler", defaults.noop_handler)
        statement_terminator = fix.get("statement_terminator", defaults.statement_terminator)
        catch_lookahead = fix.get("catch_lookahead", defaults.catch_lookahead)
        try:
            catch_lookahead = int(catch_lookahead)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"Invalid catch_lookahead '{catch_lookahead}' in {source}. Must be an integer"
            ) from e

        files = data.get("files", {})
        if isinstance(files, dict) and "extensions" in files:
            raw_extensions = files["extensions"]
            if not isinstance(raw_extensions, list):
                raise ConfigError(
                    f"Invalid extensions type in {source}: {type(raw_extensions).__name__}"
                )
            extensions = _parse_extensions(str(ext) for ext in raw_extensions)
        else:
            extensions = defaults.extensions

        logging_config = data.get("logging", {})
        if isinstance(logging_config, dict):
            log_level = logging_config.get("level", defaults.log_level)
            log_file = logging_config.get("file", defaults.log_file)
        else:
            log_level = defaults.log_level
            log_file = defaults.log_file

        return cls(
            mode=mode,
            create_backup=bool(create_backup),
            log_level=str(log_level).upper(),
            log_file=str(log_file) if log_file else None,
            noop_handler=str(noop_handler),
            statement_terminator=str(statement_terminator),
            catch_lookahead=catch_lookahead,
            extensions=extensions,
        )

    def merge_with_cli(self, **overrides: Any) -> "RuntimeConfig":  # noqa: ANN401
        """Create new config with CLI flag overrides.

        CLI flags take precedence over environment variables and config files.
        Only non-None values are applied.

        Args:
            **overrides: Keyword arguments matching RuntimeConfig fields.
                        None values are ignored (no override).

        Returns:
            New RuntimeConfig with overrides applied.

        Raises:
            ConfigError: If override value is invalid.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}

        if "mode" in filtered_overrides and isinstance(filtered_overrides["mode"], str):
            try:
                filtered_overrides["mode"] = ApplicationMode(filtered_overrides["mode"])
            except ValueError as e:
                valid_modes = [m.value for m in ApplicationMode]
                raise ConfigError(
                    f"Invalid mode '{filtered_overrides['mode']}'. Must be one of {valid_modes}"
                ) from e

        try:
            return replace(self, **filtered_overrides)
        except ConfigError:
            raise
        except Exception as e:
            raise ConfigError(f"Failed to apply CLI overrides: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Example:
            >>> config = RuntimeConfig.from_defaults()
            >>> data = config.to_dict()
            >>> assert data["mode"] == "apply"
        """
        return {
            "mode": self.mode.value,
            "create_backup": self.create_backup,
            "noop_handler": self.noop_handler,
            "statement_terminator": self.statement_terminator,
            "catch_lookahead": self.catch_lookahead,
            "extensions": list(self.extensions),
            "log_level": self.log_level,
            "log_file": self.log_file,
        }


def _parse_extensions(values: Any) -> tuple[str, ...]:  # noqa: ANN401
    """Normalize an iterable of suffixes to lowercase, dropping blanks."""
    return tuple(value.strip().lower() for value in values if value.strip())
