from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Taskflow"
    app_version: str = "0.1.0"

    storage_backend: str = "supabase"

    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_key: str = ""

    attachments_bucket: str = "task-attachments"
    avatars_bucket: str = "avatars"
    max_upload_bytes: int = 5 * 1024 * 1024

    cors_origins: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
