"""Load configuration from YAML and environment variables. No hardcoded secrets."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default config lives next to this module
_DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


class ModelSettings(BaseSettings):
    """Provider selection and per-provider request options."""

    model_config = SettingsConfigDict(env_prefix="MODEL_", extra="ignore", populate_by_name=True)
    provider: str = "anthropic"
    # Anthropic
    api_model_id: Optional[str] = None
    api_key: str = Field(default="", alias="ANTHROPIC_API_KEY")
    anthropic_base_url: Optional[str] = None
    # Shared sampling options
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    max_thinking_tokens: Optional[int] = None
    # OpenAI-compatible
    openai_base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_model_id: Optional[str] = None
    openai_streaming_enabled: bool = True
    openai_use_azure: bool = False
    azure_api_version: Optional[str] = None
    include_max_tokens: bool = False
    openai_custom_model_info: Optional[dict[str, Any]] = None
    openai_headers: dict[str, str] = Field(default_factory=dict)


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore", populate_by_name=True)
    level: str = "INFO"
    json_format: bool = Field(default=True, alias="json")


class ParserSettings(BaseSettings):
    """Optional overrides of the tool vocabulary; empty lists mean the default."""

    model_config = SettingsConfigDict(env_prefix="PARSER_", extra="ignore")
    tool_names: list[str] = Field(default_factory=list)
    param_names: list[str] = Field(default_factory=list)


class Config(BaseSettings):
    """Application config: YAML + env. Secrets from env only."""

    model_config = SettingsConfigDict(env_nested_delimiter="__", extra="ignore")

    model: ModelSettings = Field(default_factory=ModelSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    parser: ParserSettings = Field(default_factory=ParserSettings)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "Config":
        path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
        yaml_data = _load_yaml(path)
        env_name = os.getenv("TOOLSTREAM_ENV", "")
        if env_name:
            yaml_data = _deep_merge(yaml_data, _load_yaml(Path(f"config/{env_name}.yaml")))
        anthropic_key = os.getenv("ANTHROPIC_API_KEY")
        if anthropic_key:
            yaml_data.setdefault("model", {})["api_key"] = anthropic_key
        openai_key = os.getenv("OPENAI_API_KEY")
        if openai_key:
            yaml_data.setdefault("model", {})["openai_api_key"] = openai_key
        openai_url = os.getenv("OPENAI_BASE_URL")
        if openai_url:
            yaml_data.setdefault("model", {})["openai_base_url"] = openai_url
        provider = os.getenv("TOOLSTREAM_PROVIDER")
        if provider:
            yaml_data.setdefault("model", {})["provider"] = provider
        level = os.getenv("LOG_LEVEL")
        if level:
            yaml_data.setdefault("logging", {})["level"] = level
        return cls(**yaml_data)


def get_config(config_path: str | Path | None = None) -> Config:
    return Config.load(config_path)
