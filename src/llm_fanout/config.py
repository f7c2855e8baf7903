"""Configuration for the LLM fan-out service.

Configuration Priority: Environment Variables > YAML > Defaults

The configuration is built once at process start and is immutable. Components
receive it explicitly; nothing reads the environment during a request.

Example YAML configuration (llm_fanout.yaml):

    fanout:
      timeout_seconds: 20
      fallback_preview_chars: 200
      credentials:
        openrouter: ${MY_OPENROUTER_SECRET}
      providers:
        - id: Gemini
          group: gemini
          model: gemini-2.5-flash
        - id: OR_Llama3.3
          group: openrouter
          model: meta-llama/llama-3.3-70b-instruct

Secrets come from one canonical env var per provider group:
HF_API_KEY, OPENROUTER_API_KEY, GEMINI_API_KEY.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .gateway.gemini import GEMINI_API_BASE
from .gateway.huggingface import HF_ROUTER_URL
from .gateway.openrouter import OPENROUTER_API_URL
from .gateway.types import AuthMode, ProviderGroup, ProviderSpec

logger = logging.getLogger(__name__)

CREDENTIAL_ENV_VARS: Dict[ProviderGroup, str] = {
    ProviderGroup.HUGGINGFACE: "HF_API_KEY",
    ProviderGroup.OPENROUTER: "OPENROUTER_API_KEY",
    ProviderGroup.GEMINI: "GEMINI_API_KEY",
}

DEFAULT_AUTH_MODES: Dict[ProviderGroup, AuthMode] = {
    ProviderGroup.HUGGINGFACE: AuthMode.BEARER_HEADER,
    ProviderGroup.OPENROUTER: AuthMode.BEARER_HEADER,
    ProviderGroup.GEMINI: AuthMode.HEADER_KEY,
}


# =============================================================================
# Sub-configuration Models
# =============================================================================


class ProviderConfig(BaseModel):
    """One entry of the provider registry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    group: ProviderGroup
    model: str = Field(min_length=1)
    endpoint: Optional[str] = None
    auth_mode: Optional[AuthMode] = None

    def default_endpoint(self) -> str:
        if self.group == ProviderGroup.HUGGINGFACE:
            return HF_ROUTER_URL
        if self.group == ProviderGroup.OPENROUTER:
            return OPENROUTER_API_URL
        return f"{GEMINI_API_BASE}/{self.model}"

    def to_spec(self) -> ProviderSpec:
        return ProviderSpec(
            id=self.id,
            group=self.group,
            model_id=self.model,
            endpoint=self.endpoint or self.default_endpoint(),
            auth_mode=self.auth_mode or DEFAULT_AUTH_MODES[self.group],
        )


def _default_providers() -> List[ProviderConfig]:
    return [
        ProviderConfig(id="Gemini", group=ProviderGroup.GEMINI, model="gemini-2.5-flash"),
        ProviderConfig(
            id="HF_Mistral7B",
            group=ProviderGroup.HUGGINGFACE,
            model="mistralai/Mistral-7B-Instruct-v0.2",
        ),
        ProviderConfig(
            id="HF_CodeLlama7B",
            group=ProviderGroup.HUGGINGFACE,
            model="codellama/CodeLlama-7b-Instruct-hf",
        ),
        ProviderConfig(
            id="HF_DeepSeek1.3B",
            group=ProviderGroup.HUGGINGFACE,
            model="deepseek-ai/deepseek-coder-1.3b-instruct",
        ),
        ProviderConfig(
            id="OR_Mistral7B",
            group=ProviderGroup.OPENROUTER,
            model="mistralai/mistral-7b-instruct",
        ),
        ProviderConfig(
            id="OR_Llama3.3",
            group=ProviderGroup.OPENROUTER,
            model="meta-llama/llama-3.3-70b-instruct",
        ),
        ProviderConfig(
            id="OR_Qwen2.5",
            group=ProviderGroup.OPENROUTER,
            model="qwen/qwen-2.5-coder-32b-instruct",
        ),
    ]


class CredentialsConfig(BaseModel):
    """API secrets, one per provider group."""

    model_config = ConfigDict(frozen=True)

    huggingface: Optional[str] = None
    openrouter: Optional[str] = None
    gemini: Optional[str] = None

    def get(self, group: ProviderGroup) -> Optional[str]:
        return getattr(self, group.value) or None


# =============================================================================
# Main Configuration
# =============================================================================


class FanoutConfig(BaseModel):
    """Immutable process configuration for the fan-out service."""

    model_config = ConfigDict(frozen=True)

    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    providers: List[ProviderConfig] = Field(default_factory=_default_providers)
    timeout_seconds: float = Field(default=30.0, gt=0, le=600)
    max_detail_chars: int = Field(default=2000, ge=100)
    fallback_preview_chars: int = Field(default=300, ge=1)
    hf_max_tokens: int = Field(default=512, ge=1)
    openrouter_referer: Optional[str] = None
    openrouter_title: Optional[str] = None
    api_token: Optional[str] = None
    log_level: str = Field(default="INFO")

    @field_validator("providers")
    @classmethod
    def validate_unique_ids(cls, v: List[ProviderConfig]) -> List[ProviderConfig]:
        seen = set()
        for provider in v:
            if provider.id in seen:
                raise ValueError(f"duplicate provider id '{provider.id}'")
            seen.add(provider.id)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"invalid log level '{v}'")
        return level

    def provider_specs(self) -> List[ProviderSpec]:
        return [p.to_spec() for p in self.providers]


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR_NAME} references with environment values."""
    if isinstance(value, str):
        for var_name in re.findall(r"\$\{([^}]+)\}", value):
            value = value.replace(f"${{{var_name}}}", os.getenv(var_name, ""))
        return value
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    with open(config_path, "r") as f:
        raw_config = yaml.safe_load(f)
    if raw_config is None:
        return {}
    if not isinstance(raw_config, dict):
        raise ValueError("top-level YAML must be a mapping")
    section = raw_config.get("fanout", {}) or {}
    return _substitute_env_vars(section)


def load_config(
    config_path: Optional[Path] = None,
    strict: bool = False,
) -> FanoutConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to YAML configuration file. If None, uses defaults.
        strict: If True, raise ValueError on invalid files. If False, log a
                warning and fall back to defaults.

    Returns:
        FanoutConfig object

    Raises:
        ValueError: If strict=True and configuration is invalid
    """
    if config_path is None or not config_path.exists():
        return FanoutConfig()

    try:
        return FanoutConfig(**_read_yaml(config_path))
    except yaml.YAMLError as e:
        if strict:
            raise ValueError(f"Invalid YAML: {e}")
        logger.warning(f"Ignoring invalid YAML in {config_path}: {e}")
        return FanoutConfig()
    except Exception as e:
        if strict:
            raise ValueError(f"Configuration error: {e}")
        logger.warning(f"Ignoring invalid configuration in {config_path}: {e}")
        return FanoutConfig()


def _find_config_file() -> Optional[Path]:
    """Find configuration file in standard locations.

    Search order:
    1. LLM_FANOUT_CONFIG environment variable
    2. ./llm_fanout.yaml (current directory)
    3. ~/.config/llm-fanout/llm_fanout.yaml
    """
    env_path = os.getenv("LLM_FANOUT_CONFIG")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    cwd_path = Path.cwd() / "llm_fanout.yaml"
    if cwd_path.exists():
        return cwd_path

    home_path = Path.home() / ".config" / "llm-fanout" / "llm_fanout.yaml"
    if home_path.exists():
        return home_path

    return None


def _apply_env_overrides(config: FanoutConfig) -> FanoutConfig:
    """Apply environment variable overrides to configuration.

    Environment variables take precedence over YAML configuration.
    """
    config_dict = config.model_dump()

    # Credential overrides (always from env for security)
    for group, env_var in CREDENTIAL_ENV_VARS.items():
        value = (os.getenv(env_var) or "").strip()
        if value:
            config_dict["credentials"][group.value] = value

    timeout_env = os.getenv("LLM_FANOUT_TIMEOUT")
    if timeout_env:
        config_dict["timeout_seconds"] = float(timeout_env)

    detail_env = os.getenv("LLM_FANOUT_MAX_DETAIL_CHARS")
    if detail_env:
        config_dict["max_detail_chars"] = int(detail_env)

    preview_env = os.getenv("LLM_FANOUT_PREVIEW_CHARS")
    if preview_env:
        config_dict["fallback_preview_chars"] = int(preview_env)

    api_token_env = os.getenv("LLM_FANOUT_API_TOKEN")
    if api_token_env:
        config_dict["api_token"] = api_token_env

    log_level_env = os.getenv("LLM_FANOUT_LOG_LEVEL")
    if log_level_env:
        config_dict["log_level"] = log_level_env

    return FanoutConfig(**config_dict)


def get_effective_config(
    config_path: Optional[Path] = None,
    use_dotenv: bool = True,
) -> FanoutConfig:
    """Get the effective configuration with all overrides applied.

    Priority: Environment Variables > YAML > Defaults

    Args:
        config_path: Optional explicit path to configuration file.
                    If None, searches standard locations.
        use_dotenv: Load a .env file into the environment first.

    Returns:
        FanoutConfig with all overrides applied
    """
    if use_dotenv:
        load_dotenv()

    if config_path is None:
        config_path = _find_config_file()

    config = load_config(config_path)
    return _apply_env_overrides(config)


# =============================================================================
# Global Configuration Instance
# =============================================================================

_global_config: Optional[FanoutConfig] = None


def get_config() -> FanoutConfig:
    """Get the process-wide configuration, loading it on first use."""
    global _global_config
    if _global_config is None:
        _global_config = get_effective_config()
    return _global_config


def reload_config(config_path: Optional[Path] = None) -> FanoutConfig:
    """Reload the process-wide configuration.

    Returns:
        Newly loaded FanoutConfig instance
    """
    global _global_config
    _global_config = get_effective_config(config_path)
    return _global_config
