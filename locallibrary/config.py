import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    # Application
    app_name: str = os.getenv("APP_NAME", "Local Library")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Server
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    # Database (LIBRARY_DATA_FILE kept as the legacy name)
    database_file: str = (
        os.getenv("LIBRARY_DB_FILE")
        or os.getenv("LIBRARY_DATA_FILE")
        or "locallibrary.db"
    )


settings = Settings()
