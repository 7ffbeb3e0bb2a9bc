"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


DEV_JWT_SECRET = "dev-secret-not-for-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment (dev, test, production)
    ENV: str = "dev"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Database (DATABASE_URL wins; otherwise a SQLite file at DATABASE_PATH)
    DATABASE_URL: str = ""
    DATABASE_PATH: str = "./data/taskclearers.db"

    # Session Token
    JWT_SECRET: str = ""
    SESSION_DAYS: int = 14
    MAGIC_CODE_MINUTES: int = 10

    # Admin sign-in is restricted to one email domain
    ADMIN_EMAIL_DOMAIN: str = "taskclearers.com"
    COMPANY_NAME: str = "TaskClearers"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Microsoft Graph (client credentials). Empty = dev mode, mail is logged.
    AZURE_TENANT_ID: str = ""
    AZURE_CLIENT_ID: str = ""
    AZURE_CLIENT_SECRET: str = ""

    # Sender identities
    EMAIL_ADMIN: str = ""
    EMAIL_ADMIN_NAME: str = "TaskClearers Admin"
    EMAIL_SALES: str = ""
    EMAIL_SALES_NAME: str = "TaskClearers Sales"
    EMAIL_HIRING: str = ""
    EMAIL_HIRING_NAME: str = "TaskClearers Hiring"
    O365_SHARED_MAILBOX: str = ""  # Legacy single-mailbox setup
    NOTIFICATION_EMAIL: str = ""

    # File storage
    STORAGE_BACKEND: str = "local"  # "local" or "s3"
    UPLOAD_DIR: str = "./uploads"
    S3_BUCKET: str = ""
    S3_ENDPOINT_URL: str = ""  # R2 / MinIO / other S3-compatible endpoints
    S3_REGION: str = ""
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""

    # Rate limits (limits-style strings)
    REDIS_URL: str = ""
    RATE_LIMIT_LOGIN: str = "5/15minutes"
    RATE_LIMIT_VERIFY: str = "5/15minutes"
    RATE_LIMIT_GLOBAL_IP: str = "20/15minutes"
    RATE_LIMIT_APPLICATION: str = "5/15minutes"
    RATE_LIMIT_APPLICATION_GLOBAL: str = "50/15minutes"
    RATE_LIMIT_TRACKING: str = "60/minute"

    # Sentry (optional)
    SENTRY_DSN: str = ""

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL, defaulting to a SQLite file."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite:///{self.DATABASE_PATH}"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"

    @property
    def jwt_secret(self) -> str:
        """Signing key; a fixed fallback is only allowed outside production."""
        if self.JWT_SECRET:
            return self.JWT_SECRET
        if self.is_production:
            raise RuntimeError("JWT_SECRET must be set in production")
        return DEV_JWT_SECRET

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only in production."""
        return self.ENV not in ("dev", "test")

    @property
    def graph_configured(self) -> bool:
        return bool(
            self.AZURE_TENANT_ID and self.AZURE_CLIENT_ID and self.AZURE_CLIENT_SECRET
        )


settings = Settings()
