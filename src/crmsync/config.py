from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    salesforce_login_url: str = "https://login.salesforce.com"
    salesforce_client_id: str = ""
    salesforce_client_secret: str = ""
    salesforce_api_version: str = "v59.0"
    database_url: str = "sqlite:///./crmsync.db"
    sync_interval_minutes: int = 30
    http_timeout_seconds: float = 30.0  # applies to every Salesforce call
    api_runs_scheduler: bool = False  # host the sync schedule inside the API process

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
