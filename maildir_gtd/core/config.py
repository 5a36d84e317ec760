"""Configuration management for the GTD Maildir engine."""

import os
from pathlib import Path
from typing import Dict, List, Optional, Any, Union
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml
import structlog
from dotenv import load_dotenv

from maildir_gtd.core.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("config/default.yaml")


class AppConfig(BaseModel):
    """Application configuration."""
    name: str = "GTD Maildir"
    version: str = "3.0.0"
    debug: bool = False


class StorageConfig(BaseModel):
    """Workspace storage configuration."""
    workspace_root: str = "."
    # Sub-path under the workspace holding Organization/ and People/
    mailboxes_dir: str = ""
    work_item_extensions: List[str] = Field(default_factory=lambda: [".md", ".eml"])

    @field_validator('work_item_extensions')
    @classmethod
    def normalize_extensions(cls, v):
        return [ext if ext.startswith('.') else f'.{ext}' for ext in v]


class MaildirConfig(BaseModel):
    """Maildir message handling configuration."""
    hostname: str = "swoft.local"
    max_message_size: int = Field(default=5 * 1024 * 1024, gt=0)  # 5 MiB
    inbox_limit: int = Field(default=10, ge=1)
    folder_limit: int = Field(default=50, ge=1)
    max_concurrency: int = Field(default=5, ge=1)
    content_preview_chars: int = Field(default=1000, ge=0)
    address_domain: str = "swoft.ai"


class MCPConfig(BaseModel):
    """MCP server configuration."""
    name: str = "swoft-cloud-storage"
    transport: str = "stdio"

    @field_validator('transport')
    @classmethod
    def validate_transport(cls, v):
        valid_transports = ['stdio', 'sse', 'streamable-http']
        if v not in valid_transports:
            raise ValueError(f'Invalid transport: {v}. Must be one of {valid_transports}')
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "dev"

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Invalid log level: {v}. Must be one of {valid_levels}')
        return v.upper()

    @field_validator('format')
    @classmethod
    def validate_format(cls, v):
        if v not in ('dev', 'json'):
            raise ValueError(f'Invalid log format: {v}. Must be dev or json')
        return v


class Config(BaseSettings):
    """Main configuration class."""

    app: AppConfig = Field(default_factory=AppConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    maildir: MaildirConfig = Field(default_factory=MaildirConfig)
    mcp: MCPConfig = Field(default_factory=MCPConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="GTD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_configuration(self):
        """Validate interdependent configuration fields."""
        workspace = self.workspace_path
        if not workspace.exists():
            logger.warning(
                "Workspace root not found",
                path=str(workspace),
                suggestion="Set GTD_WORKSPACE_ROOT to the synced workspace folder"
            )

        if self.maildir.inbox_limit > self.maildir.folder_limit:
            logger.warning(
                "Inbox limit larger than folder limit",
                inbox_limit=self.maildir.inbox_limit,
                folder_limit=self.maildir.folder_limit
            )

        if Path(self.storage.mailboxes_dir).is_absolute():
            raise ValueError("mailboxes_dir must be relative to the workspace root")

        return self

    @property
    def workspace_path(self) -> Path:
        return Path(self.storage.workspace_root).expanduser()

    def validate_startup_requirements(self) -> Dict[str, Any]:
        """Validate configuration for startup readiness and return status report."""
        validation_results = {
            "status": "valid",
            "errors": [],
            "warnings": [],
            "checks": []
        }

        workspace = self.workspace_path
        if not workspace.is_dir():
            validation_results["errors"].append(f"❌ Workspace root not found: {workspace}")
            validation_results["status"] = "error"
        else:
            validation_results["checks"].append(f"✅ Workspace root: {workspace}")

            mailboxes_root = workspace / self.storage.mailboxes_dir
            for parent in ("Organization", "People"):
                if (mailboxes_root / parent).is_dir():
                    validation_results["checks"].append(f"✅ {parent}/ mailboxes directory exists")
                else:
                    validation_results["warnings"].append(f"⚠️ {parent}/ mailboxes directory missing")
                    if validation_results["status"] == "valid":
                        validation_results["status"] = "warning"

        if ':' in self.maildir.hostname or '/' in self.maildir.hostname:
            validation_results["warnings"].append(
                f"⚠️ Hostname '{self.maildir.hostname}' contains characters that will be replaced in filenames"
            )
            if validation_results["status"] == "valid":
                validation_results["status"] = "warning"

        logger.info(
            "Startup validation completed",
            status=validation_results["status"],
            errors=len(validation_results["errors"]),
            warnings=len(validation_results["warnings"]),
            checks=len(validation_results["checks"])
        )

        return validation_results

    @classmethod
    def load_from_yaml(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> "Config":
        """Load configuration from YAML file with environment variable overrides.

        ``overrides`` (e.g. command-line options) win over both the file and
        the environment, and are applied before validation.
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        config_path = Path(config_path)

        load_dotenv()

        config_data = {}
        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {config_path}: {e}", {"path": str(config_path)})
            if not isinstance(config_data, dict):
                raise ConfigurationError(f"Configuration root must be a mapping: {config_path}", {"path": str(config_path)})

        env_overrides = cls._get_env_overrides()
        config_data = cls._merge_configs(config_data, env_overrides)
        if overrides:
            config_data = cls._merge_configs(config_data, overrides)

        return cls(**config_data)

    @staticmethod
    def _get_env_overrides() -> Dict[str, Any]:
        """Extract configuration overrides from environment variables."""
        overrides: Dict[str, Any] = {}

        # Later entries win when several map to the same key
        env_mapping = [
            ('CLOUD_STORAGE_WORKSPACE', 'storage.workspace_root'),
            ('GTD_WORKSPACE_ROOT', 'storage.workspace_root'),
            ('GTD_MAILBOXES_DIR', 'storage.mailboxes_dir'),
            ('GTD_HOSTNAME', 'maildir.hostname'),
            ('GTD_MAX_MESSAGE_SIZE', 'maildir.max_message_size'),
            ('LOG_LEVEL', 'logging.level'),
            ('LOG_FORMAT', 'logging.format'),
            ('MCP_SERVER_NAME', 'mcp.name'),
            ('MCP_TRANSPORT', 'mcp.transport'),
            ('APP_DEBUG', 'app.debug'),
        ]

        for env_var, config_key in env_mapping:
            value = os.getenv(env_var)
            if value is None:
                continue

            if config_key in ['maildir.max_message_size']:
                value = int(value)
            elif config_key in ['app.debug']:
                value = value.lower() in ('true', '1', 'yes', 'on')

            keys = config_key.split('.')
            current = overrides
            for key in keys[:-1]:
                current = current.setdefault(key, {})
            current[keys[-1]] = value

        return overrides

    @staticmethod
    def _merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = Config._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "app": self.app.model_dump(),
            "storage": self.storage.model_dump(),
            "maildir": self.maildir.model_dump(),
            "mcp": self.mcp.model_dump(),
            "logging": self.logging.model_dump(),
        }
