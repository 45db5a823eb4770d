import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    # Overrides the config's data_source: mock | google_ads | warehouse
    data_source: Optional[str]

    log_level: str
    log_dir: str

    # Dashboard
    dashboard_config: str
    dashboard_secret_key: str


def get_settings() -> Settings:
    load_dotenv()  # reads .env if present

    data_source = os.getenv("KPI_DATA_SOURCE", "").strip().lower() or None

    return Settings(
        data_source=data_source,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
        dashboard_config=os.getenv("DASHBOARD_CONFIG", "configs/client_demo.yaml"),
        dashboard_secret_key=os.getenv(
            "DASHBOARD_SECRET_KEY", "dev-secret-key-change-in-production"
        ),
    )
