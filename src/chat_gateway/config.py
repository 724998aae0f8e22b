"""Configuration for the chat completion gateway.

Configuration is read once at process start into an immutable snapshot.
Provider credentials are resolved from the environment at load time, so
adapters never consult ambient state while serving a request.

Configuration Priority: Environment Variables > YAML > Defaults

Example YAML configuration (chat_gateway.yaml):

    gateway:
      history_limit: 3
      deadline_seconds: 45
      providers:
        - name: gemini
          kind: gemini
          model: gemini-2.5-flash
          credential_env_var: GOOGLE_AI_API_KEY
        - name: openai
          kind: openai
          model: gpt-4o-mini
          credential_env_var: OPENAI_API_KEY
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. Provide clear, concise, and direct answers. "
    "Be brief but informative."
)

GEMINI_ENDPOINT = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)
GEMINI_MODELS_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"
OPENAI_ENDPOINT = "https://api.openai.com/v1/chat/completions"
OPENAI_MODELS_ENDPOINT = "https://api.openai.com/v1/models"


# =============================================================================
# Configuration Models
# =============================================================================


class ProviderConfig(BaseModel):
    """Static description of one backend in the fallback chain."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: Literal["gemini", "openai"]
    model: str
    credential_env_var: str
    endpoint_template: Optional[str] = None
    models_endpoint: Optional[str] = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=1024, ge=1)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    top_k: Optional[int] = Field(default=None, ge=1)
    safety_threshold: Optional[str] = None
    timeout_seconds: float = Field(default=30.0, gt=0.0, le=600.0)
    enabled: bool = True
    # Resolved from credential_env_var at load time, never from YAML.
    api_key: Optional[str] = Field(default=None, repr=False)

    @model_validator(mode="before")
    @classmethod
    def fill_endpoints(cls, data: Any) -> Any:
        """Default endpoints by provider kind."""
        if not isinstance(data, dict):
            return data
        defaults = {
            "gemini": (GEMINI_ENDPOINT, GEMINI_MODELS_ENDPOINT),
            "openai": (OPENAI_ENDPOINT, OPENAI_MODELS_ENDPOINT),
        }
        if data.get("kind") not in defaults:
            return data
        endpoint, models_endpoint = defaults[data["kind"]]
        data = dict(data)
        if not data.get("endpoint_template"):
            data["endpoint_template"] = endpoint
        if not data.get("models_endpoint"):
            data["models_endpoint"] = models_endpoint
        return data

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    def endpoint_url(self) -> str:
        return self.endpoint_template.format(model=self.model)


def _default_providers() -> List[ProviderConfig]:
    return [
        ProviderConfig(
            name="gemini",
            kind="gemini",
            model="gemini-2.5-flash",
            credential_env_var="GOOGLE_AI_API_KEY",
            temperature=0.7,
            max_output_tokens=1024,
            top_p=0.95,
            top_k=40,
            safety_threshold="BLOCK_MEDIUM_AND_ABOVE",
        ),
        ProviderConfig(
            name="openai",
            kind="openai",
            model="gpt-4o-mini",
            credential_env_var="OPENAI_API_KEY",
            temperature=0.7,
            max_output_tokens=1024,
        ),
    ]


class GatewayConfig(BaseModel):
    """Process-wide gateway configuration snapshot."""

    model_config = ConfigDict(frozen=True)

    providers: List[ProviderConfig] = Field(default_factory=_default_providers)
    history_limit: int = Field(default=3, ge=0, le=100)
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, min_length=1)
    deadline_seconds: Optional[float] = Field(default=None, gt=0.0)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"invalid log level '{v}'")
        return level

    @field_validator("providers")
    @classmethod
    def validate_unique_names(cls, v: List[ProviderConfig]) -> List[ProviderConfig]:
        names = [p.name for p in v]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"duplicate provider names: {sorted(duplicates)}")
        return v

    @property
    def enabled_providers(self) -> List[ProviderConfig]:
        return [p for p in self.providers if p.enabled]

    def credential_env_vars(self) -> List[str]:
        return [p.credential_env_var for p in self.enabled_providers]

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"providers": {"__all__": {"api_key"}}})

    def to_yaml(self) -> str:
        return yaml.dump({"gateway": self.to_dict()}, default_flow_style=False, sort_keys=False)


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR_NAME} references in configuration values."""
    if isinstance(value, str):
        for var_name in re.findall(r"\$\{([^}]+)\}", value):
            value = value.replace(f"${{{var_name}}}", os.getenv(var_name, ""))
        return value
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def _read_yaml(config_path: Optional[Path], strict: bool) -> Dict[str, Any]:
    if config_path is None or not config_path.exists():
        return {}

    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        if strict:
            raise ValueError(f"Invalid YAML: {e}")
        logger.warning(f"Ignoring invalid config file {config_path}: {e}")
        return {}
    except OSError as e:
        if strict:
            raise ValueError(f"Cannot read config file {config_path}: {e}")
        logger.warning(f"Ignoring unreadable config file {config_path}: {e}")
        return {}

    if not isinstance(raw_config, dict):
        return {}
    section = raw_config.get("gateway") or {}
    return _substitute_env_vars(section)


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to raw configuration data."""
    data = dict(data)

    history_env = os.getenv("CHAT_GATEWAY_HISTORY_LIMIT")
    if history_env:
        data["history_limit"] = int(history_env)

    deadline_env = os.getenv("CHAT_GATEWAY_DEADLINE")
    if deadline_env:
        data["deadline_seconds"] = float(deadline_env)

    log_level_env = os.getenv("CHAT_GATEWAY_LOG_LEVEL")
    if log_level_env:
        data["log_level"] = log_level_env

    providers = [dict(p) for p in data.get("providers") or _default_provider_dicts()]

    timeout_env = os.getenv("CHAT_GATEWAY_TIMEOUT")
    if timeout_env:
        for provider in providers:
            provider["timeout_seconds"] = float(timeout_env)

    order_env = os.getenv("CHAT_GATEWAY_PROVIDER_ORDER")
    if order_env:
        by_name = {p.get("name"): p for p in providers}
        order = [name.strip() for name in order_env.split(",") if name.strip()]
        unknown = [name for name in order if name not in by_name]
        if unknown:
            raise ValueError(f"unknown providers in CHAT_GATEWAY_PROVIDER_ORDER: {unknown}")
        providers = [by_name[name] for name in order]

    data["providers"] = providers
    return data


def _default_provider_dicts() -> List[Dict[str, Any]]:
    return [p.model_dump(exclude={"api_key"}) for p in _default_providers()]


def _resolve_credentials(data: Dict[str, Any]) -> Dict[str, Any]:
    """Read each provider's credential from the environment, once."""
    resolved = []
    for provider in data["providers"]:
        provider = dict(provider)
        provider.pop("api_key", None)
        env_var = provider.get("credential_env_var")
        value = os.getenv(env_var) if env_var else None
        provider["api_key"] = value or None
        resolved.append(provider)
    return {**data, "providers": resolved}


def load_config(config_path: Optional[Path] = None, strict: bool = False) -> GatewayConfig:
    """Load configuration from YAML plus environment.

    Args:
        config_path: Path to YAML configuration file. If None, uses defaults.
        strict: If True, raise ValueError on invalid configuration. If False,
                fall back to defaults on errors.

    Returns:
        Immutable GatewayConfig snapshot with credentials resolved.

    Raises:
        ValueError: If strict=True and configuration is invalid
    """
    raw = _read_yaml(config_path, strict)
    try:
        data = _resolve_credentials(_apply_env_overrides(raw))
        return GatewayConfig(**data)
    except ValueError as e:
        # pydantic.ValidationError is a ValueError
        if strict:
            raise ValueError(f"Configuration error: {e}")
        logger.warning(f"Invalid configuration, using defaults: {e}")
        return GatewayConfig(**_resolve_credentials({"providers": _default_provider_dicts()}))


def _find_config_file() -> Optional[Path]:
    """Find configuration file in standard locations.

    Search order:
    1. CHAT_GATEWAY_CONFIG environment variable
    2. ./chat_gateway.yaml (current directory)
    3. ~/.config/chat-gateway/chat_gateway.yaml
    """
    env_path = os.getenv("CHAT_GATEWAY_CONFIG")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    cwd_path = Path.cwd() / "chat_gateway.yaml"
    if cwd_path.exists():
        return cwd_path

    home_path = Path.home() / ".config" / "chat-gateway" / "chat_gateway.yaml"
    if home_path.exists():
        return home_path

    return None


def get_effective_config(config_path: Optional[Path] = None) -> GatewayConfig:
    """Load .env files, locate the YAML file and build the snapshot."""
    load_dotenv(".env.local")
    load_dotenv()
    if config_path is None:
        config_path = _find_config_file()
    return load_config(config_path)


# =============================================================================
# Global Configuration Instance
# =============================================================================

_global_config: Optional[GatewayConfig] = None


def get_config() -> GatewayConfig:
    """Get the process-wide configuration, loading it on first use."""
    global _global_config
    if _global_config is None:
        _global_config = get_effective_config()
    return _global_config


def reload_config(config_path: Optional[Path] = None) -> GatewayConfig:
    """Reload the process-wide configuration."""
    global _global_config
    _global_config = get_effective_config(config_path)
    return _global_config
