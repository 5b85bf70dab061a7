"""Configuration management - Centralized configuration for AuthShield.

Provides environment-aware configuration with sensible defaults.
All configuration is loaded from environment variables with fallbacks.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StorageType(str, Enum):
    """State store backend types."""
    MEMORY = "memory"
    FILE = "file"
    DYNAMODB = "dynamodb"


def _get_project_root() -> Path:
    """Get the project root directory."""
    # settings.py -> config -> common -> authshield -> src -> project_root
    current = Path(__file__).resolve()
    return current.parent.parent.parent.parent.parent


@dataclass
class Config:
    """Central configuration object for AuthShield.
    
    All settings can be overridden via environment variables prefixed with AUTHSHIELD_.
    
    Example:
        AUTHSHIELD_ENVIRONMENT=production
        AUTHSHIELD_STORAGE_TYPE=dynamodb
        AUTHSHIELD_DYNAMODB_TABLE=authshield-state
    """
    
    # Core settings
    environment: Environment = field(
        default_factory=lambda: Environment(
            os.getenv("AUTHSHIELD_ENVIRONMENT", "development")
        )
    )
    debug: bool = field(
        default_factory=lambda: os.getenv("AUTHSHIELD_DEBUG", "false").lower() == "true"
    )
    log_level: LogLevel = field(
        default_factory=lambda: LogLevel(os.getenv("AUTHSHIELD_LOG_LEVEL", "INFO"))
    )
    
    # Paths
    project_root: Path = field(default_factory=_get_project_root)
    
    # API settings
    api_host: str = field(
        default_factory=lambda: os.getenv("AUTHSHIELD_API_HOST", "0.0.0.0")
    )
    api_port: int = field(
        default_factory=lambda: int(os.getenv("AUTHSHIELD_API_PORT", "8000"))
    )
    
    # State store settings
    storage_type: StorageType = field(
        default_factory=lambda: StorageType(
            os.getenv("AUTHSHIELD_STORAGE_TYPE", "file")
        )
    )
    state_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("AUTHSHIELD_STATE_DIR", "./data/state")
        )
    )
    dynamodb_table: Optional[str] = field(
        default_factory=lambda: os.getenv("AUTHSHIELD_DYNAMODB_TABLE")
    )
    
    # AWS settings (for DynamoDB)
    aws_region: str = field(
        default_factory=lambda: os.getenv("AWS_DEFAULT_REGION", "us-east-1")
    )
    aws_profile: Optional[str] = field(
        default_factory=lambda: os.getenv("AWS_PROFILE")
    )
    
    # Security event trail
    event_log_path: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["AUTHSHIELD_EVENT_LOG"])
            if os.getenv("AUTHSHIELD_EVENT_LOG") else None
        )
    )
    
    # Policy settings; unset means config_dir / "defense_policy.yaml"
    policy_file: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["AUTHSHIELD_POLICY_FILE"])
            if os.getenv("AUTHSHIELD_POLICY_FILE") else None
        )
    )
    
    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.policy_file is None:
            self.policy_file = self.config_dir / "defense_policy.yaml"
        
        if self.storage_type == StorageType.DYNAMODB and not self.dynamodb_table:
            raise ValueError(
                "AUTHSHIELD_DYNAMODB_TABLE must be set when using DynamoDB state storage"
            )
        
        # State must survive restarts outside development
        if self.environment == Environment.PRODUCTION and self.storage_type == StorageType.MEMORY:
            import warnings
            warnings.warn(
                "In-memory state storage is enabled in production; "
                "lockouts and sessions will be lost on restart",
                RuntimeWarning,
                stacklevel=2
            )
        
        if self.environment == Environment.PRODUCTION and self.debug:
            import warnings
            warnings.warn(
                "Debug mode is enabled in production environment",
                RuntimeWarning,
                stacklevel=2
            )
    
    @property
    def config_dir(self) -> Path:
        """Get the config directory path."""
        return self.project_root / "config"
    
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION
    
    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.
    
    Returns:
        Config: The global configuration singleton.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
