from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://habitlog:habitlog@db:5432/habitlog"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    CORS_ORIGINS: str = "*"

    # IANA zone name for "today" and snapshot hours. Empty means server-local time.
    TIMEZONE: str = ""

    # Fixed credential table, "user:password" pairs separated by commas.
    USER_CREDENTIALS: str = "mikel:1234,eneko:valladares,ana:5678"

    TICK_INTERVAL_SECONDS: float = 60.0
    SNAPSHOT_HOURS: str = "3,6,9,12,15,18,21"
    # Minutes after the top of a snapshot hour during which the tick may fire it.
    SNAPSHOT_WINDOW_MINUTES: int = 1

    STATIC_DIR: str = "public"
    # Alembic owns the schema; enable only for throwaway local databases.
    CREATE_TABLES: bool = False

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def credentials(self) -> dict[str, str]:
        table: dict[str, str] = {}
        for pair in self.USER_CREDENTIALS.split(","):
            user, sep, password = pair.strip().partition(":")
            if sep and user:
                table[user] = password
        return table

    @property
    def usernames(self) -> list[str]:
        return list(self.credentials)

    @property
    def snapshot_hours_set(self) -> frozenset[int]:
        return frozenset(int(h) for h in self.SNAPSHOT_HOURS.split(",") if h.strip())


settings = Settings()
