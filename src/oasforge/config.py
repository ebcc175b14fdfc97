"""Generator configuration and precedence resolution.

Settings can come from four places. Precedence (high to low):

1. CLI flags
2. Environment variables (``OASFORGE_SPEC_VERSION``, ``OASFORGE_TITLE``,
   ``OASFORGE_API_VERSION``, ``OASFORGE_FORMAT``, ``OASFORGE_INDENT``,
   ``OASFORGE_NO_PLUGINS``)
3. Project config: ``./oasforge.json``, or the file named by
   ``$OASFORGE_CONFIG``
4. Defaults (:class:`~oasforge.models.GeneratorConfig`)

``title`` and ``api_version`` left unset fall back to the route file's
``info`` block when the document is built.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from oasforge.exceptions import ConfigError
from oasforge.models import GeneratorConfig, coerce_flag

_PROJECT_CONFIG_FILENAME = "oasforge.json"
_CONFIG_PATH_ENV = "OASFORGE_CONFIG"

_ENV_FIELDS = {
    "OASFORGE_SPEC_VERSION": "spec_version",
    "OASFORGE_TITLE": "title",
    "OASFORGE_API_VERSION": "api_version",
    "OASFORGE_FORMAT": "output_format",
    "OASFORGE_INDENT": "indent",
}


def project_config_path() -> Path:
    """Path of the project config file (it may not exist)."""
    override = os.environ.get(_CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return Path.cwd() / _PROJECT_CONFIG_FILENAME


def load_project_config() -> Optional[dict[str, Any]]:
    """Load the project config file.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object, or if
            ``$OASFORGE_CONFIG`` names a missing file.
    """
    path = project_config_path()
    if not path.is_file():
        if os.environ.get(_CONFIG_PATH_ENV):
            raise ConfigError(f"Config file not found: {path}")
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Project config at {path} must be a JSON object")
    return data


def env_overrides() -> dict[str, Any]:
    """Settings taken from ``OASFORGE_*`` environment variables."""
    overrides: dict[str, Any] = {}
    for env_var, field_name in _ENV_FIELDS.items():
        value = os.environ.get(env_var)
        if value:
            overrides[field_name] = value
    if "OASFORGE_NO_PLUGINS" in os.environ:
        overrides["plugins_enabled"] = not coerce_flag(os.environ["OASFORGE_NO_PLUGINS"])
    return overrides


def resolve_config(**cli: Any) -> GeneratorConfig:
    """Merge every configuration source into a :class:`GeneratorConfig`.

    Args:
        **cli: CLI flag values keyed by ``GeneratorConfig`` field name.
            ``None`` means "not given".

    Raises:
        ConfigError: If a source holds invalid JSON or an invalid value.
    """
    merged: dict[str, Any] = {}

    # 3. Project config
    project = load_project_config()
    if project is not None:
        merged.update(project)

    # 2. Environment
    merged.update(env_overrides())

    # 1. CLI flags
    merged.update({key: value for key, value in cli.items() if value is not None})

    try:
        return GeneratorConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
