"""Global user configuration helpers."""

from __future__ import annotations

import os
from pathlib import Path
import tomllib

from pydantic import BaseModel, Field

GLOBAL_CONFIG_PATH = Path.home() / ".memegenius" / "config.toml"
GEMINI_API_KEY_NAME = "GEMINI_API_KEY"
API_KEY_ENV_NAMES = (GEMINI_API_KEY_NAME, "GOOGLE_API_KEY", "API_KEY")


class GlobalConfig(BaseModel):
    """User-level configuration stored in ~/.memegenius/config.toml."""

    api_keys: dict[str, str] = Field(default_factory=dict)
    default_model: str = "flash"
    default_output_dir: str = "./memes"


def load_global_config(path: Path = GLOBAL_CONFIG_PATH) -> GlobalConfig:
    """Load global config from TOML, returning defaults when missing."""
    if not path.exists():
        return GlobalConfig()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid config file {path}: {exc}") from exc
    return GlobalConfig.model_validate(data)


def save_global_config(config: GlobalConfig, path: Path = GLOBAL_CONFIG_PATH) -> None:
    """Persist global config to TOML."""
    path.parent.mkdir(parents=True, exist_ok=True)
    settings = config.model_dump(exclude={"api_keys"})
    lines = [f"{key} = {_toml_string(value)}" for key, value in sorted(settings.items())]
    lines += ["", "[api_keys]"]
    lines += [
        f"{key} = {_toml_string(value)}" for key, value in sorted(config.api_keys.items())
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _toml_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def apply_gemini_api_key(config: GlobalConfig, api_key: str) -> None:
    """Store a Gemini API key in ``config``."""
    cleaned_api_key = api_key.strip()
    if not cleaned_api_key:
        raise ValueError("API key cannot be empty.")
    config.api_keys[GEMINI_API_KEY_NAME] = cleaned_api_key


def get_gemini_api_key(config: GlobalConfig) -> str | None:
    """Resolve a Gemini API key from the config, then from the environment."""
    configured = config.api_keys.get(GEMINI_API_KEY_NAME)
    if configured:
        return configured
    for env_name in API_KEY_ENV_NAMES:
        value = os.getenv(env_name)
        if value:
            return value
    return None
