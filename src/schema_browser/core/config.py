"""
Configuration management for the schema browser
"""
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PORTS = {
    'postgresql': 5432,
    'postgres': 5432,
    'mysql': 3306,
    'redis': 6379,
}


class ConnectionConfig(BaseModel):
    """Store connection configuration"""
    type: str = "postgresql"
    host: str = "localhost"
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    schema: Optional[str] = "public"
    ssl_mode: Optional[str] = "prefer"

    @field_validator('type')
    @classmethod
    def _known_type(cls, value: str) -> str:
        value = value.lower()
        if value not in DEFAULT_PORTS:
            raise ValueError(f"Unsupported database type: {value}")
        return value

    def resolved_port(self) -> int:
        return self.port or DEFAULT_PORTS[self.type]

    def to_connector_config(self) -> Dict[str, Any]:
        """Dictionary handed to ConnectorFactory.create_connector"""
        data = self.model_dump()
        data['port'] = self.resolved_port()
        return data


class BrowserConfig(BaseModel):
    """Table browsing configuration"""
    page_size: int = Field(default=50, gt=0)
    max_page_size: int = Field(default=1000, gt=0)


class AIConfig(BaseModel):
    """Text-to-query generator configuration"""
    api_key: str = ""
    api_url: str = "https://dashscope.aliyuncs.com/compatible-mode/v1/chat/completions"
    model: str = "qwen-turbo"
    temperature: float = 0.1
    timeout_seconds: int = 60


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = "INFO"
    format: str = "text"
    file: Optional[str] = None
    max_bytes: int = 10485760
    backup_count: int = 5


class Config(BaseSettings):
    """Main configuration class"""
    model_config = SettingsConfigDict(env_prefix='SCHEMA_BROWSER_', env_nested_delimiter='__')

    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, config_path: str) -> "Config":
        """Load configuration from YAML file"""
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, "r") as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**config_dict)
