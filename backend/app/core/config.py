from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Database – SQLite pour le développement local
    DATABASE_URL: str = "sqlite+aiosqlite:///./unilien.db"

    # Conformité : avertissement quand le total du jour approche des 10h
    DAILY_HOURS_WARNING_MARGIN: float = 1.0

    # Décompte des jours ouvrés : exclure les jours fériés français
    LEAVE_EXCLUDE_PUBLIC_HOLIDAYS: bool = True

    # Férié travaillé habituellement (+60%) ou exceptionnellement (+100%)
    HOLIDAY_HABITUAL_WORK: bool = False

    # Délai de re-validation pendant l'édition d'une intervention
    REVALIDATION_DEBOUNCE_MS: int = 300

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
