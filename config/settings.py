from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Store backend: "redis" for the shared real-time store, "memory" for single-process dev
    STORE_BACKEND: str = "redis"
    STORE_KEY_PREFIX: str = "sf"

    # Redis (defaults match docker-compose.yml for local dev)
    REDIS_URL: str = "redis://localhost:6379/0"

    # JWT — no default, MUST be set in .env
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 30
    JWT_REFRESH_EXPIRE_DAYS: int = 7

    # Admin panel password (override in .env)
    ADMIN_PASSWORD: str = "admin123"

    # Orders
    ORDER_PAYMENT_TIMEOUT_MINUTES: int = 360  # unpaid orders expire after 6 hours
    ORDER_SWEEP_INTERVAL_SECONDS: int = 60  # 0 disables the periodic sweeper

    # App
    APP_NAME: str = "Storefront"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev


settings = Settings()
