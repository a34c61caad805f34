# modelshelf/config.py

import os
from pathlib import Path
from typing import Optional
import yaml
from pydantic import BaseModel, Field
import anyio


class LibraryConfig(BaseModel):
    path: str = "./3dassets"
    descriptor_file: str = "modelpack.json"


class DataConfig(BaseModel):
    dir: str = "./data"

    @property
    def database_url(self) -> str:
        return f"sqlite:///{Path(self.dir) / 'db.sqlite3'}"

    @property
    def preview_cache_dir(self) -> str:
        return str(Path(self.dir) / "preview_cache")


class RefreshConfig(BaseModel):
    """Configuration for library refresh passes."""
    max_concurrent_models: int = 4
    max_concurrent_renders: int = 2
    refresh_on_startup: bool = False


class RendererConfig(BaseModel):
    """Configuration for the external preview renderer."""
    # Placeholders: {input}, {output}, {size}
    command: list[str] = Field(
        default_factory=lambda: ["stl-thumb", "-s", "{size}", "{input}", "{output}"]
    )
    size: int = 512
    timeout_seconds: float = 120.0


class APIConfig(BaseModel):
    """Configuration for REST API server."""
    host: str = "localhost"
    port: int = 3000
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"])
    debug: bool = False


class LoggingConfig(BaseModel):
    level: str = "INFO"
    dir: str = "./logs"
    file_logging: bool = False


class Config(BaseModel):
    library: LibraryConfig = Field(default_factory=LibraryConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    renderer: RendererConfig = Field(default_factory=RendererConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _get_env_value(name: str) -> Optional[str]:
    """Get environment variable value, treating empty as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _get_env_int(name: str) -> Optional[int]:
    value = _get_env_value(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer") from e


def _apply_env_overrides(config: Config) -> Config:
    libraries_path = _get_env_value("LIBRARIES_PATH")
    if libraries_path is not None:
        config.library.path = libraries_path

    data_dir = _get_env_value("DATA_DIR")
    if data_dir is not None:
        config.data.dir = data_dir

    log_level = _get_env_value("LOG_LEVEL")
    if log_level is not None:
        config.logging.level = log_level.upper()

    api_host = _get_env_value("API_HOST")
    if api_host is not None:
        config.api.host = api_host

    api_port = _get_env_int("API_PORT")
    if api_port is not None:
        config.api.port = api_port

    return config


async def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file (async)."""
    path = anyio.Path(config_path or "configs/settings.yaml")
    if await path.exists():
        text = await path.read_text()
        # Run YAML parsing in a thread to avoid blocking the event loop
        data = await anyio.to_thread.run_sync(yaml.safe_load, text)
        config = Config(**data) if data else Config()
        return _apply_env_overrides(config)

    return _apply_env_overrides(Config())
