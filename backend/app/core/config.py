from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- DB ---
    DATABASE_URL: str = "sqlite:///./teamhub.sqlite"

    # --- Sessions (JWT) ---
    JWT_SECRET: str = "change-me-teamhub-session-secret"
    JWT_ALG: str = "HS256"
    JWT_EXPIRE_MIN: int = 10080  # 7 days
    SESSION_COOKIE_NAME: str = "teamhub_session"

    # --- Seed admin ---
    ADMIN_USERNAME: str = "admin"
    ADMIN_INITIAL_PASSWORD: str = "admin"

    # --- Listing ---
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 200

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
