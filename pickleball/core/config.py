from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./pickleball.db"
    DEFAULT_POINTS_TO_WIN: int = 11
    DEFAULT_QUALIFIERS_PER_GROUP: int = 2
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
