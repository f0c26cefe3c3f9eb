from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


DEV_SESSION_SECRET = "dev-secret-portal-change-me-0123456789"


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./portal.db"
    SESSION_SECRET: str = DEV_SESSION_SECRET
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    BCRYPT_ROUNDS: int = 12

    SESSION_COOKIE_NAME: str = "student_portal_session"
    SESSION_MAX_AGE: int = 60 * 60 * 24 * 7  # 7 дней

    UPLOAD_ROOT: str = "public/uploads"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10 MiB

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    LOGIN_RATE_LIMIT: str = "10/minute"
    REGISTER_RATE_LIMIT: str = "60/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("SESSION_SECRET")
    @classmethod
    def secret_long_enough(cls, v: str) -> str:
        if len(v) < 32:
            raise ValueError("SESSION_SECRET must be at least 32 characters")
        return v

    @model_validator(mode="after")
    def no_dev_secret_in_production(self):
        if self.is_production and self.SESSION_SECRET == DEV_SESSION_SECRET:
            raise ValueError("SESSION_SECRET must be set explicitly in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
