import os
from dotenv import load_dotenv


class Settings:
    def __init__(self) -> None:
        # Load variables from .env into environment
        load_dotenv()
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "changeme")
        self.TOKEN_TTL_HOURS: int = int(os.getenv("TOKEN_TTL_HOURS", "12"))
        self.MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
        self.MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "timetracker")
        # "mongo" in deployments, "memory" for tests and local demos
        self.STORE_BACKEND: str = os.getenv("STORE_BACKEND", "mongo").strip().lower()
        # Calendar dates and HH:MM display values are derived in this zone
        self.TIMEZONE: str = os.getenv("TIMEZONE", "UTC")
        # Bare handles are normalized to <handle>@<USERNAME_DOMAIN>
        self.USERNAME_DOMAIN: str = os.getenv("USERNAME_DOMAIN", "timetracker.app").strip().lower()
        # auto_close | reject
        self.CLOCK_OUT_BREAK_POLICY: str = os.getenv("CLOCK_OUT_BREAK_POLICY", "auto_close").strip().lower()
        self.FRONTEND_BASE_URL: str = os.getenv("FRONTEND_BASE_URL", "http://localhost:5173")
        # Optional comma-separated list of additional allowed origins for CORS
        self.ALLOWED_ORIGINS: list[str] = [
            o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()
        ]


settings = Settings()
