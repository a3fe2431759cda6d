"""Application Settings - Central Configuration"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "license_workflow_dev"

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # Workflow
    enquiry_role_code: str = "SHO"  # Role that receives RE_ENQUIRY field work
    conflict_retry_limit: int = 1  # Automatic retries after a compare-and-swap conflict
    enforce_forward_hierarchy: bool = True
    red_flag_attachment_type: str = "RED_FLAG"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
