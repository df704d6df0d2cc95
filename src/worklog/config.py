"""
Configuration for worklog analysis runs.
"""

import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional

import yaml

__all__ = [
    "WorklogConfig",
    "ConfigError",
    "load_config",
    "load_api_key",
    "DEFAULT_CONFIG_PATH",
    "PROVIDERS",
]

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "worklog" / "config.yaml"

PROJECT_ROOT = Path(__file__).parent.parent.parent

# provider -> (API key env var, default model)
PROVIDERS = {
    "openrouter": ("OPENROUTER_API_KEY", "openai/gpt-4o-mini"),
    "openai": ("OPENAI_API_KEY", "gpt-4o-mini"),
    "anthropic": ("ANTHROPIC_API_KEY", "claude-3-5-haiku-latest"),
}


class ConfigError(ValueError):
    """Raised when configuration is malformed or out of range."""
    pass


def load_api_key(provider: str = "openrouter") -> str:
    """Load the provider's API key from environment or .env file."""
    env_var = PROVIDERS.get(provider, PROVIDERS["openrouter"])[0]
    key = os.environ.get(env_var)
    if key:
        return key

    env_path = PROJECT_ROOT / ".env"
    if env_path.exists():
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line.startswith(env_var):
                    # Handle both KEY:value and KEY=value formats
                    if "=" in line:
                        return line.split("=", 1)[1].strip()
                    elif ":" in line:
                        return line.split(":", 1)[1].strip()
    raise ValueError(f"API key not found. Set {env_var} env var or add to .env")


@dataclass
class WorklogConfig:
    """Configuration for clustering, status inference and narrative synthesis."""

    # Thematic clustering
    thematic_threshold: float = 0.3
    theme_keywords: int = 5
    reference_boost: bool = True     # PR numbers / commit hashes pull items together

    # Feature clustering
    feature_threshold: float = 0.25
    feature_name_keywords: int = 3
    feature_keyword_limit: int = 10
    max_next_steps: int = 4
    recent_hours: float = 24.0

    # Repository status
    git_repos: list[str] = field(default_factory=list)

    # Summarizer - disabled means fallback narrative only
    llm_enabled: bool = False
    llm_provider: str = "openrouter"
    llm_model: Optional[str] = None  # None = provider default
    llm_timeout: float = 30.0
    llm_max_tokens: int = 150

    # Output
    log_dir: Optional[str] = None
    verbose: bool = False

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "WorklogConfig":
        """Create from dict, filtering out unknown keys."""
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)

    @property
    def model(self) -> str:
        """Summarizer model, falling back to the provider default."""
        if self.llm_model:
            return self.llm_model
        return PROVIDERS.get(self.llm_provider, PROVIDERS["openrouter"])[1]

    def validate(self) -> None:
        """
        Check ranges and provider once, at load time.

        Raises:
            ConfigError: On the first invalid field
        """
        for name in ("thematic_threshold", "feature_threshold"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be between 0 and 1, got {value!r}")

        for name in ("theme_keywords", "feature_name_keywords",
                     "feature_keyword_limit", "max_next_steps"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")

        for name in ("recent_hours", "llm_timeout"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}")

        if not isinstance(self.git_repos, list):
            raise ConfigError("git_repos must be a list of paths")

        if self.llm_enabled and self.llm_provider not in PROVIDERS:
            raise ConfigError(
                f"Invalid LLM provider: {self.llm_provider}. "
                f"Valid providers: {', '.join(PROVIDERS)}"
            )


def _env_overrides() -> dict:
    overrides = {}

    repos = os.environ.get("WORKLOG_GIT_REPOS")
    if repos:
        parsed = [r.strip() for r in repos.split(",") if r.strip()]
        if parsed:
            overrides["git_repos"] = parsed

    enabled = os.environ.get("WORKLOG_LLM_ENABLED")
    if enabled is not None:
        overrides["llm_enabled"] = enabled.strip().lower() not in ("false", "0", "no")

    model = os.environ.get("WORKLOG_LLM_MODEL", "").strip()
    if model:
        overrides["llm_model"] = model

    provider = os.environ.get("WORKLOG_LLM_PROVIDER", "").strip()
    if provider:
        overrides["llm_provider"] = provider

    return overrides


def load_config(path: Optional[Path] = None) -> WorklogConfig:
    """
    Load config from YAML, merged over defaults, then environment overrides.

    Args:
        path: YAML file (default: ~/.config/worklog/config.yaml). A missing
            file yields the defaults.

    Returns:
        Validated WorklogConfig

    Raises:
        ConfigError: Malformed YAML or invalid values
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

    file_config = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file {config_path}: {e}")
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")

    merged = {**file_config, **_env_overrides()}
    config = WorklogConfig.from_dict(merged)
    config.validate()
    return config
