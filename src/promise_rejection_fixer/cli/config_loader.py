"""Runtime configuration loading for CLI commands.

Precedence: CLI flags > environment variables > config file > defaults.
"""

import os
from pathlib import Path
from typing import Any

from promise_rejection_fixer.config.runtime_config import RuntimeConfig

# RuntimeConfig field -> environment variable read by RuntimeConfig.from_env()
ENV_VAR_MAP: dict[str, str] = {
    "mode": "PRF_MODE",
    "create_backup": "PRF_BACKUP",
    "noop_handler": "PRF_NOOP_HANDLER",
    "statement_terminator": "PRF_STATEMENT_TERMINATOR",
    "catch_lookahead": "PRF_CATCH_LOOKAHEAD",
    "extensions": "PRF_EXTENSIONS",
    "log_level": "PRF_LOG_LEVEL",
    "log_file": "PRF_LOG_FILE",
}


def load_runtime_config(
    config: str | None,
    cli_overrides: dict[str, Any],
    env_var_map: dict[str, str] | None = None,
) -> RuntimeConfig:
    """Build the effective RuntimeConfig for a command.

    Args:
        config: Optional path to a YAML/TOML configuration file.
        cli_overrides: RuntimeConfig field overrides from CLI flags; None values are
            ignored.
        env_var_map: Field to environment variable mapping. Only variables that are
            actually set override the file/default values.

    Returns:
        The merged RuntimeConfig.

    Raises:
        ConfigError: If any source holds an invalid value.
    """
    env_var_map = ENV_VAR_MAP if env_var_map is None else env_var_map

    runtime_config = (
        RuntimeConfig.from_file(Path(config)) if config else RuntimeConfig.from_defaults()
    )

    set_fields = [field for field, var in env_var_map.items() if os.getenv(var)]
    if set_fields:
        env_config = RuntimeConfig.from_env()
        runtime_config = runtime_config.merge_with_cli(
            **{field: getattr(env_config, field) for field in set_fields}
        )

    return runtime_config.merge_with_cli(**cli_overrides)
