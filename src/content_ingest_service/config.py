"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.6167.160 Safari/537.36"
)
BROWSER_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8"
)

# Proxy templates; "{url}" receives the percent-encoded target URL.
DEFAULT_FETCH_PROXIES = [
    "https://corsproxy.io/?{url}",
    "https://api.codetabs.com/v1/proxy?quest={url}",
    "https://cors.proxy.consumet.org/?url={url}",
    "https://corsproxy.dev/?url={url}",
    "https://proxy-middleware.zenrows.com/proxy?url={url}",
    "https://api.allorigins.win/raw?url={url}",
    "https://crossorigin.me/{url}",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_v1_prefix: str = "/api/v1"
    cors_origins: str = "http://localhost:5173,http://localhost:13000"
    cors_allow_all: bool = False

    # App
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = False
    app_name: str = "Content Ingest Service"
    app_version: str = "0.1.0"

    # File Upload
    max_upload_size_mb: int = 50

    # Fetch
    fetch_timeout_seconds: float = 15.0
    fetch_proxies: list[str] = DEFAULT_FETCH_PROXIES
    fetch_user_agent: str = BROWSER_USER_AGENT
    fetch_accept: str = BROWSER_ACCEPT
    fetch_max_content_size_mb: int = 20

    # Article derivation
    excerpt_length: int = 280
    words_per_minute: int = 200

    # PDF / OCR
    pdf_min_text_length: int = 10  # Below this a page is treated as image-only
    pdf_ocr_scale: float = 2.0
    pdf_line_tolerance: float = 1.0
    ocr_language: str = "eng"
    ocr_tessdata_dir: str | None = None

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string.

        Returns:
            List of allowed origins, or ["*"] if cors_allow_all is True.
        """
        if self.cors_allow_all:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
