from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Indiyum"

    # --- Razorpay (both optional: without them only cash on delivery works) ---
    RAZORPAY_KEY_ID: str | None = None
    RAZORPAY_KEY_SECRET: str | None = None
    RAZORPAY_BASE_URL: str = "https://api.razorpay.com/v1"
    GATEWAY_TIMEOUT_SECONDS: float = 10.0

    # --- Storage ---
    DB_FILE: str = "db.json"
    REDIS_URL: str | None = None
    SESSION_TTL_SECONDS: int = 86400

    # --- Business defaults ---
    DEFAULT_CURRENCY: str = "INR"
    TIMEZONE: str = "Asia/Kolkata"

    LOG_LEVEL: str = "INFO"
    PORT: int = 5000

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"  # other services share the same .env
    )

    @property
    def gateway_configured(self) -> bool:
        return bool(self.RAZORPAY_KEY_ID and self.RAZORPAY_KEY_SECRET)

settings = Settings()
