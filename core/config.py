from typing import Optional

from pydantic.v1 import BaseSettings


class Settings(BaseSettings):

    DATABASE_URL: str
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    RECENT_BATTLES_LIMIT: int = 6
    RELATED_BATTLES_LIMIT: int = 4
    RELATED_KNIGHTS_LIMIT: int = 6
    TOP_KNIGHTS_LIMIT: int = 10
    MEMBER_PAGE_SIZE: int = 4

    LOG_LEVEL: Optional[str] = None
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings object imported everywhere
settings = Settings()
