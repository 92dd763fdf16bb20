from os import getenv
from dotenv import load_dotenv

load_dotenv()

class Config:

    ALLOWED_ORIGINS: list = getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")


    POSTGRES_USER: str = getenv("POSTGRES_USER")
    POSTGRES_PASSWORD: str = getenv("POSTGRES_PASSWORD")
    POSTGRES_DB: str = getenv("POSTGRES_DB")
    POSTGRES_HOST: str = getenv("POSTGRES_HOST", "db")
    POSTGRES_PORT: str = getenv("POSTGRES_PORT", "5432")

    @property
    def DATABASE_URL(self) -> str:
        return getenv(
            "DATABASE_URL",
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # Redis (сессии, blacklist, rate limiting)
    REDIS_URL: str = getenv("REDIS_URL", "redis://localhost:6379/0")

    # JWT
    JWT_SECRET: str = getenv("JWT_SECRET")
    JWT_REFRESH_SECRET: str = getenv("JWT_REFRESH_SECRET")
    JWT_ALGORITHM: str = getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_MINUTES: int = int(getenv("JWT_EXPIRES_MINUTES", "1440"))
    JWT_REFRESH_EXPIRES_DAYS: int = int(getenv("JWT_REFRESH_EXPIRES_DAYS", "7"))
    SESSION_TTL_SECONDS: int = int(getenv("SESSION_TTL_SECONDS", str(7 * 24 * 60 * 60)))

    # Rate limiting
    RATE_LIMIT_WINDOW_SECONDS: int = int(getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    RATE_LIMIT_MAX_REQUESTS: int = int(getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = int(getenv("LOGIN_RATE_LIMIT_WINDOW_SECONDS", "300"))
    LOGIN_RATE_LIMIT_MAX_REQUESTS: int = int(getenv("LOGIN_RATE_LIMIT_MAX_REQUESTS", "50"))
    LOGIN_FAILURE_WINDOW_SECONDS: int = int(getenv("LOGIN_FAILURE_WINDOW_SECONDS", "600"))
    LOGIN_FAILURE_MAX_ATTEMPTS: int = int(getenv("LOGIN_FAILURE_MAX_ATTEMPTS", "3"))

    # Планировщик
    SCHEDULER_ENABLED: bool = getenv("SCHEDULER_ENABLED", "true").lower() == "true"
    SWEEP_INTERVAL_SECONDS: int = int(getenv("SWEEP_INTERVAL_SECONDS", "300"))
    NOTIFICATION_RETENTION_DAYS: int = int(getenv("NOTIFICATION_RETENTION_DAYS", "30"))

    # Webhook для уведомлений
    NOTIFICATION_WEBHOOK_URL: str = getenv("NOTIFICATION_WEBHOOK_URL")

    LOG_LEVEL: str = getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = getenv("LOG_FILE")

    # Порт приложения
    APP_PORT: int = int(getenv("APP_PORT", "8000"))

    def validate(self) -> None:
        """Проверяет наличие обязательных переменных окружения."""
        required_vars = {
            "JWT_SECRET": self.JWT_SECRET,
            "JWT_REFRESH_SECRET": self.JWT_REFRESH_SECRET,
        }
        missing_vars = [key for key, value in required_vars.items() if not value]
        if missing_vars:
            raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")

settings = Config()
