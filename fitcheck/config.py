import os
from pydantic import BaseModel


DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


class Settings(BaseModel):
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_image_model: str = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image-preview")
    gemini_text_model: str = os.getenv("GEMINI_TEXT_MODEL", "gemini-2.5-flash")

    # "gemini" or "mock"; empty means gemini when a key is configured
    vto_provider: str = os.getenv("VTO_PROVIDER", "")

    storage_dir: str = os.getenv("STORAGE_DIR", os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "storage")))

    # Product page scraping
    scrape_timeout_seconds: float = float(os.getenv("SCRAPE_TIMEOUT_SECONDS", "10"))
    scrape_user_agent: str = os.getenv("SCRAPE_USER_AGENT", DEFAULT_USER_AGENT)
    image_fetch_timeout_seconds: float = float(os.getenv("IMAGE_FETCH_TIMEOUT_SECONDS", "30"))

    # Rate limit (token bucket)
    rate_limit_per_min: int = int(os.getenv("RATE_LIMIT_PER_MIN", "60"))
    rate_limit_burst: int = int(os.getenv("RATE_LIMIT_BURST", "30"))


settings = Settings()
