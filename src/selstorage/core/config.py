"""Configuration management for selstorage."""

from pydantic_settings import BaseSettings


class StorageSettings(BaseSettings):
    """Library settings with environment variable support."""

    log_level: str = "INFO"
    otel_enabled: bool = False
    otel_service_name: str = "selstorage"
    log_json: bool = True

    host_suffix: str = "selcdn.ru"
    api_host: str = "api"
    auth_host: str = "auth"
    default_protocol: int = 3
    use_tls: bool = True
    timeout_seconds: float = 30.0
    upload_chunk_size: int = 64 * 1024

    model_config = {
        "env_prefix": "SELSTORAGE_",
        "case_sensitive": False,
    }


settings = StorageSettings()
