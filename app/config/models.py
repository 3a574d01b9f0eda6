import os
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from app.config.paths import get_app_dir
from app.config.yaml import safe_load_with_env

# Environment variables that override values loaded from YAML.
ENV_OVERRIDES = {
    'BRIDGE_HOST': ('host',),
    'BRIDGE_PORT': ('port',),
    'BRIDGE_REQUEST_TIMEOUT': ('bridge', 'request_timeout'),
    'BRIDGE_SESSION_TOKEN': ('session_token',),
}


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default='INFO', description='Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)')
    console_enabled: bool = Field(default=True, description='Enable console logging')
    file_enabled: bool = Field(default=True, description='Enable file logging')
    log_file_dir: Optional[str] = Field(default=None, description='Log directory (defaults to ~/.browser-bridge/logs)')
    max_file_size: str = Field(default='10MB', description='Maximum log file size before rotation')
    backup_count: int = Field(default=4, description='Number of backup files to keep')


class BridgeConfig(BaseModel):
    """Exchange lifecycle settings."""

    request_timeout: float = Field(default=120.0, gt=0, description='Seconds an exchange may wait for its fulfiller')
    fulfiller_stale_after: Optional[float] = Field(
        default=None, gt=0, description='Treat the browser session as unavailable when no fulfiller polled within this many seconds'
    )


class OpenAIConfig(BaseModel):
    """OpenAI-compatible surface settings."""

    model_aliases: Dict[str, str] = Field(
        default_factory=lambda: {'gpt-3.5-turbo': 'claude-sonnet-4', 'gpt-4': 'claude-sonnet-4'},
        description='Public model name to downstream model identifier',
    )
    advertised_models: List[str] = Field(default_factory=lambda: ['gpt-3.5-turbo', 'gpt-4'])
    model_owner: str = Field(default='browser-bridge')
    forward_full_conversation: bool = Field(default=False, description='Forward every message instead of the newest user message')


class ConfigModel(BaseModel):
    """Configuration model with validation."""

    model_config = ConfigDict(extra='allow')

    version: str = Field(default='1', description='Config version')
    host: str = Field(default='127.0.0.1')
    port: int = Field(default=3001, ge=1, le=65535)
    dev: bool = Field(default=False)
    dump_requests: bool = Field(default=False)
    dump_responses: bool = Field(default=False)
    dump_headers: bool = Field(default=False)
    dump_dir: Optional[str] = Field(default=None)
    cors_allow_origins: List[str] = Field(default_factory=lambda: ['*'])
    redact_headers: List[str] = Field(default_factory=lambda: ['authorization', 'x-api-key', 'cookie', 'set-cookie'])
    session_token: Optional[str] = Field(default=None, description='Browser session token to start with')
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description='Logging configuration')

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> 'ConfigModel':
        """Load configuration from YAML file.

        Tries multiple locations in order:
        1. Explicit config_path if provided
        2. ~/.browser-bridge/config.yaml in user home directory
        3. ./config.yaml in current directory

        Environment overrides (BRIDGE_*) are applied last.
        """

        config_paths = []
        if config_path:
            config_paths.append(config_path)
        else:
            home_config = get_app_dir() / 'config.yaml'
            if home_config.exists():
                config_paths.append(str(home_config))
            config_paths.append('config.yaml')

        data: Dict[str, Any] = {}
        for path in config_paths:
            try:
                with open(path, 'r') as f:
                    file_data = safe_load_with_env(f) or {}
                    # Later files override earlier ones
                    data.update(file_data)
            except FileNotFoundError:
                continue
            except yaml.YAMLError as e:
                raise ValueError(f'Invalid YAML in config file {path}: {e}')
            except OSError as e:
                raise ValueError(f'Error reading config file {path}: {e}')

        _apply_env_overrides(data)
        return cls(**data)

    def save(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        with open(config_path, 'w') as f:
            yaml.safe_dump(self.model_dump(mode='json'), f, default_flow_style=False, sort_keys=False, indent=2)


def _apply_env_overrides(data: Dict[str, Any]) -> None:
    for env_name, path in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is None or value == '':
            continue
        target = data
        for key in path[:-1]:
            section = target.get(key)
            if not isinstance(section, dict):
                section = {}
                target[key] = section
            target = section
        target[path[-1]] = value
