from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    """Application settings."""

    # API
    api_title: str = "Workflow Showcase API"
    api_version: str = "0.1.0"
    api_prefix: str = "/api/v1"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Storage
    data_dir: Path = Path("./data")
    workflows_dir: Path = Path("./data/workflows")

    # Listing
    default_page_size: int = 20
    max_page_size: int = 100

    # Feed
    site_url: str = "http://localhost:3000"
    feed_title: str = "Workflow Showcase - Latest workflows"
    feed_size: int = 20

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

# Ensure directories exist
settings.data_dir.mkdir(parents=True, exist_ok=True)
settings.workflows_dir.mkdir(parents=True, exist_ok=True)
