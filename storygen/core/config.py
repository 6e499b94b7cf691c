"""
StoryGen Configuration Management

Centralized configuration system with JSON loading and validation.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import ConfigurationError, InvalidConfigError
from .constants import (
    DEFAULT_ACKNOWLEDGEMENT,
    DEFAULT_MODEL_PRICING,
    DEFAULT_TEXT_MODEL,
    PROJECT_NAME,
    VERSION,
)


@dataclass
class ReviewConfig:
    """Review gate settings."""
    enabled: bool = False
    # Only the request currently shown to the reviewer may be settled
    head_only_resolution: bool = True


@dataclass
class AgentConfig:
    """Agent session registry settings."""
    default_model: str = DEFAULT_TEXT_MODEL
    acknowledgement: str = DEFAULT_ACKNOWLEDGEMENT


@dataclass
class BackendConfig:
    """Configuration for the conversational generation backend."""
    provider: str = "gemini"
    api_key_env: str = "GEMINI_API_KEY"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    temperature: float = 0.7
    max_tokens: int = 8192
    timeout: int = 120
    max_retries: int = 3

    @classmethod
    def from_dict(cls, data: dict) -> 'BackendConfig':
        """Create BackendConfig from dictionary."""
        defaults = cls()
        try:
            return cls(
                provider=data.get('provider', defaults.provider),
                api_key_env=data.get('api_key_env', defaults.api_key_env),
                base_url=data.get('base_url', defaults.base_url),
                temperature=float(data.get('temperature', defaults.temperature)),
                max_tokens=int(data.get('max_tokens', defaults.max_tokens)),
                timeout=int(data.get('timeout', defaults.timeout)),
                max_retries=int(data.get('max_retries', defaults.max_retries)),
            )
        except (TypeError, ValueError) as e:
            raise InvalidConfigError(f"Invalid backend configuration: {e}")


@dataclass
class PricingConfig:
    """Token pricing per model, USD per 1M tokens (input, output)."""
    models: Dict[str, Tuple[float, float]] = field(
        default_factory=lambda: dict(DEFAULT_MODEL_PRICING)
    )

    @classmethod
    def from_dict(cls, data: dict) -> 'PricingConfig':
        """Create PricingConfig from {"model": [input, output]} mapping."""
        models = {}
        for name, prices in data.items():
            if not isinstance(prices, (list, tuple)) or len(prices) != 2:
                raise InvalidConfigError(
                    f"Pricing for '{name}' must be [input_per_million, output_per_million]"
                )
            try:
                models[name] = (float(prices[0]), float(prices[1]))
            except (TypeError, ValueError) as e:
                raise InvalidConfigError(f"Invalid pricing for '{name}': {e}")
        return cls(models=models)


@dataclass
class ServerConfig:
    """Debug console API server settings."""
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )
    rate_limit: str = "120/minute"


@dataclass
class DebugConfig:
    """Debug log settings."""
    max_log_entries: int = 1000


@dataclass
class StorygenConfig:
    """Main configuration class for StoryGen."""

    app_name: str = PROJECT_NAME
    version: str = VERSION

    logs_dir: Path = field(default_factory=lambda: Path("logs"))
    log_level: str = "INFO"
    verbose_logging: bool = True

    review: ReviewConfig = field(default_factory=ReviewConfig)
    agents: AgentConfig = field(default_factory=AgentConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    debug: DebugConfig = field(default_factory=DebugConfig)

    @classmethod
    def from_dict(cls, data: dict) -> 'StorygenConfig':
        """Create StorygenConfig from dictionary."""
        config = cls()

        config.app_name = data.get('app_name', config.app_name)
        config.version = data.get('version', config.version)
        config.log_level = data.get('log_level', config.log_level)
        config.verbose_logging = data.get('verbose_logging', config.verbose_logging)
        if 'logs_dir' in data:
            config.logs_dir = Path(data['logs_dir'])

        if 'review' in data:
            review_data = data['review']
            config.review = ReviewConfig(
                enabled=bool(review_data.get('enabled', False)),
                head_only_resolution=bool(review_data.get('head_only_resolution', True)),
            )

        if 'agents' in data:
            agent_data = data['agents']
            config.agents = AgentConfig(
                default_model=agent_data.get('default_model', DEFAULT_TEXT_MODEL),
                acknowledgement=agent_data.get('acknowledgement', DEFAULT_ACKNOWLEDGEMENT),
            )

        if 'backend' in data:
            config.backend = BackendConfig.from_dict(data['backend'])

        if 'pricing' in data:
            config.pricing = PricingConfig.from_dict(data['pricing'])

        if 'server' in data:
            server_data = data['server']
            defaults = ServerConfig()
            config.server = ServerConfig(
                host=server_data.get('host', defaults.host),
                port=int(server_data.get('port', defaults.port)),
                cors_origins=server_data.get('cors_origins', defaults.cors_origins),
                rate_limit=server_data.get('rate_limit', defaults.rate_limit),
            )

        if 'debug' in data:
            config.debug = DebugConfig(
                max_log_entries=int(data['debug'].get('max_log_entries', 1000))
            )

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a JSON-serializable dictionary."""
        return {
            'app_name': self.app_name,
            'version': self.version,
            'logs_dir': str(self.logs_dir),
            'log_level': self.log_level,
            'verbose_logging': self.verbose_logging,
            'review': {
                'enabled': self.review.enabled,
                'head_only_resolution': self.review.head_only_resolution,
            },
            'agents': {
                'default_model': self.agents.default_model,
                'acknowledgement': self.agents.acknowledgement,
            },
            'backend': {
                'provider': self.backend.provider,
                'api_key_env': self.backend.api_key_env,
                'base_url': self.backend.base_url,
                'temperature': self.backend.temperature,
                'max_tokens': self.backend.max_tokens,
                'timeout': self.backend.timeout,
                'max_retries': self.backend.max_retries,
            },
            'pricing': {name: list(prices) for name, prices in self.pricing.models.items()},
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'cors_origins': list(self.server.cors_origins),
                'rate_limit': self.server.rate_limit,
            },
            'debug': {'max_log_entries': self.debug.max_log_entries},
        }


def get_default_config() -> StorygenConfig:
    """Return a configuration populated with defaults."""
    return StorygenConfig()


def load_config(config_path: Path = None) -> StorygenConfig:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to configuration file. If None, uses default.

    Returns:
        Loaded StorygenConfig instance
    """
    if config_path is None:
        config_path = Path("config/storygen_config.json")
    config_path = Path(config_path)

    if not config_path.exists():
        return StorygenConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to load config: {e}")

    return StorygenConfig.from_dict(data)


def save_config(config: StorygenConfig, config_path: Path) -> Path:
    """Write configuration to a JSON file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config.to_dict(), indent=2), encoding='utf-8')
    return config_path


_config: Optional[StorygenConfig] = None


def get_config() -> StorygenConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: StorygenConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
