import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        upload_dir: Path,
        upload_max_bytes: int,
        csrf_secret: str,
        vision_api_key: str,
        vision_model: str,
        vision_api_url: str,
        vision_timeout_secs: float,
        report_brand: str,
    ) -> None:
        self.database_url = database_url
        self.upload_dir = upload_dir
        self.upload_max_bytes = upload_max_bytes
        self.csrf_secret = csrf_secret
        self.vision_api_key = vision_api_key
        self.vision_model = vision_model
        self.vision_api_url = vision_api_url
        self.vision_timeout_secs = vision_timeout_secs
        self.report_brand = report_brand


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("TAXEAZE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "receipts.db"
    database_url = os.getenv("TAXEAZE_DATABASE_URL", f"sqlite:///{default_db}")
    upload_dir = Path(
        os.getenv("TAXEAZE_UPLOAD_DIR", str(data_dir / "uploads"))
    ).resolve()
    upload_max_bytes = int(
        os.getenv("TAXEAZE_UPLOAD_MAX_BYTES", str(10 * 1024 * 1024))
    )
    csrf_secret = os.getenv(
        "TAXEAZE_CSRF_SECRET",
        "5b0f3c8e27d94a61b1e6f0a2c7d8e9f4a3b2c1d0e9f8a7b6c5d4e3f2a1b0c9d8",
    )
    vision_api_key = os.getenv("TAXEAZE_VISION_API_KEY") or os.getenv(
        "OPENAI_API_KEY", ""
    )
    vision_model = os.getenv("TAXEAZE_VISION_MODEL", "gpt-4o-mini")
    vision_api_url = os.getenv(
        "TAXEAZE_VISION_API_URL", "https://api.openai.com/v1/chat/completions"
    )
    vision_timeout_secs = float(os.getenv("TAXEAZE_VISION_TIMEOUT_SECS", "30"))
    report_brand = os.getenv("TAXEAZE_REPORT_BRAND", "TaxEaze")
    return Settings(
        database_url=database_url,
        upload_dir=upload_dir,
        upload_max_bytes=upload_max_bytes,
        csrf_secret=csrf_secret,
        vision_api_key=vision_api_key,
        vision_model=vision_model,
        vision_api_url=vision_api_url,
        vision_timeout_secs=vision_timeout_secs,
        report_brand=report_brand,
    )
