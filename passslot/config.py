from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    # Credentials
    PASSSLOT_APP_KEY: str = ""

    # Transport
    PASSSLOT_DEBUG: bool = False
    PASSSLOT_TIMEOUT: Optional[float] = None  # Seconds, None blocks until the server answers
    PASSSLOT_CA_BUNDLE: Optional[str] = None  # Overrides the bundled cacert.pem

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Allow extra env variables to be ignored


@lru_cache()
def get_settings() -> Settings:
    return Settings()
