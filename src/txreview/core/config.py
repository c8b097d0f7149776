from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # App
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"

    # Data Paths
    # Default to a 'data' folder in the project root if not specified
    DATA_DIR: Path = Path("data")

    # Review
    PAGE_SIZE: int = 20
    BUSINESS_ID: str = "default"

    @property
    def DB_DIR(self) -> Path:
        return self.DATA_DIR / "db"

    @property
    def IMPORTS_DIR(self) -> Path:
        return self.DATA_DIR / "imports"

    @property
    def EXPORTS_DIR(self) -> Path:
        return self.DATA_DIR / "exports"

    @property
    def DATABASE_URL(self) -> str:
        # Ensure db directory exists
        self.DB_DIR.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{self.DB_DIR}/review.db"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
