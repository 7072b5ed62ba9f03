"""Application Configuration"""

from pydantic_settings import BaseSettings
from pydantic import ConfigDict, field_validator
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = ConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application
    APP_NAME: str = "OpenDeepWiki MCP"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"  # development, staging, production

    # Database - MySQL
    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: int = 3306
    MYSQL_USER: str = "root"
    MYSQL_PASSWORD: str = ""
    MYSQL_DATABASE: str = "opendeepwiki"
    # Full SQLAlchemy async URL; overrides the MySQL settings above when set
    DATABASE_URL: Optional[str] = None

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text
    LOG_HEALTH_CHECKS: bool = False

    # Repository workspaces (checked-out sources live under {dir}/{owner}/{repo}/tree)
    REPOSITORIES_DIRECTORY: str = "/data/repositories"

    # MCP
    MCP_PATH_PREFIX: str = "/api/mcp"
    MCP_STATELESS_HTTP: bool = False
    MCP_AGGREGATION_ENABLED: bool = True
    MCP_AGGREGATION_INITIAL_DELAY_SECONDS: int = 120
    MCP_AGGREGATION_INTERVAL_SECONDS: int = 3600
    USAGE_LOG_QUEUE_SIZE: int = 1000
    SUMMARY_MAX_OUTPUT_TOKENS: int = 12000
    SUMMARY_TEMPERATURE: float = 0.2
    AZURE_OPENAI_API_VERSION: str = "2024-06-01"

    @field_validator('MYSQL_PORT')
    @classmethod
    def validate_port(cls, v: int, info) -> int:
        """Validate that port numbers are in the valid range (1-65535)"""
        if v < 1 or v > 65535:
            raise ValueError(f'{info.field_name} must be between 1 and 65535, got {v}')
        return v

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is one of the standard Python logging levels"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f'LOG_LEVEL must be one of {valid_levels}, got {v}')
        return v.upper()

    @field_validator('SECRET_KEY')
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Validate that secret key is sufficiently long for security"""
        if len(v) < 32:
            raise ValueError('SECRET_KEY must be at least 32 characters long for security')
        return v

    @field_validator(
        'MCP_AGGREGATION_INTERVAL_SECONDS',
        'USAGE_LOG_QUEUE_SIZE',
        'SUMMARY_MAX_OUTPUT_TOKENS'
    )
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        """Intervals and sizes must be positive"""
        if v <= 0:
            raise ValueError(f'{info.field_name} must be positive, got {v}')
        return v

    @field_validator('MCP_AGGREGATION_INITIAL_DELAY_SECONDS')
    @classmethod
    def validate_non_negative(cls, v: int, info) -> int:
        if v < 0:
            raise ValueError(f'{info.field_name} must not be negative, got {v}')
        return v

    @field_validator('MCP_PATH_PREFIX')
    @classmethod
    def validate_path_prefix(cls, v: str) -> str:
        """Normalize the MCP prefix to a leading slash and no trailing slash"""
        v = "/" + v.strip().strip("/")
        if v == "/":
            raise ValueError('MCP_PATH_PREFIX must not be the root path')
        return v

    @property
    def repository_scoped_mcp_path(self) -> str:
        """Path template advertised to MCP clients"""
        return f"{self.MCP_PATH_PREFIX}/{{owner}}/{{repo}}"


settings = Settings()
