"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based
configuration. The configuration object is built once at process start and
handed to the application factory; nothing reads the environment afterwards.
"""

import logging
from typing import List, Optional

from pydantic_settings import BaseSettings

from .errors import ConfigurationError


DEFAULT_JWT_SECRET = "your-secret-key"

logger = logging.getLogger("digital_bank.config")


class DigitalBankConfig(BaseSettings):
    """Digital bank service configuration"""
    
    # Security configuration
    jwt_secret: str = DEFAULT_JWT_SECRET  # JWT_SECRET env var
    jwt_expiry_hours: int = 24
    jwt_algorithm: str = "HS256"
    require_jwt_secret: bool = False  # Refuse to start on the fallback secret
    bcrypt_rounds: int = 12
    
    # Database configuration
    database_url: str = "sqlite:///digital_bank.db"  # DATABASE_URL env var, memory:// for tests
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090
    cors_origins: List[str] = ["*"]
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout
    
    # Encryption configuration
    encryption_enabled: bool = False  # Must opt-in
    encryption_master_key: str = ""
    encryption_provider: str = "fernet"  # fernet, aesgcm, noop
    
    class Config:
        env_file = ".env"
        case_sensitive = False
    
    @property
    def uses_default_secret(self) -> bool:
        """True when tokens would be signed with the built-in development secret"""
        return not self.jwt_secret or self.jwt_secret == DEFAULT_JWT_SECRET


def check_security(config: DigitalBankConfig) -> None:
    """
    Validate security-sensitive settings at startup.
    
    Raises:
        ConfigurationError: if the fallback signing secret is in use while
            ``require_jwt_secret`` is set, or encryption is enabled without a key
    """
    if config.uses_default_secret:
        if config.require_jwt_secret:
            raise ConfigurationError("JWT_SECRET must be set when REQUIRE_JWT_SECRET is enabled")
        logger.warning("JWT_SECRET is not set - signing tokens with the development fallback secret")
    
    if config.encryption_enabled and not config.encryption_master_key:
        raise ConfigurationError("ENCRYPTION_MASTER_KEY must be set when encryption is enabled")


# Global configuration instance
config = DigitalBankConfig()


def get_config() -> DigitalBankConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> DigitalBankConfig:
    """Reload configuration from environment"""
    global config
    config = DigitalBankConfig()
    return config
