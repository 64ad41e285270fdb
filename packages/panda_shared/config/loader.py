"""Settings loading with deterministic precedence.

The cascade is always:
1) explicit params (``cli_params``)
2) environment variables
3) ~/.config/panda/panda.yaml (or an explicit ``config_path``)
4) built-in model defaults

Environment variable format:
- Prefix: ``PANDA_``
- Nested keys: ``__`` separator
- Example: ``PANDA_NODE__ENDPOINT=http://node:2020`` -> ``node.endpoint``
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from pydantic_settings import SettingsConfigDict

from .models import DEFAULT_CONFIG_PATH, PandaSettings


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> PandaSettings:
    """Load settings by applying the standard precedence cascade."""
    resolved = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    class _ResolvedSettings(PandaSettings):
        model_config = SettingsConfigDict(yaml_file=resolved)

    return _ResolvedSettings(**dict(cli_params or {}))
