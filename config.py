import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # App
    app_name: str = os.getenv("APP_NAME", "Book Catalog")
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_prefix: str = os.getenv("API_PREFIX", "/api/book")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    cors_origins: list = field(
        default_factory=lambda: [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    )

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./books.db")

    # Cover images
    upload_dir: str = os.getenv("UPLOAD_DIR", "./uploads")
    upload_url_path: str = os.getenv("UPLOAD_URL_PATH", "/uploads")
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    image_folder: str = os.getenv("IMAGE_FOLDER", "Book-Management")
    max_upload_size: int = int(os.getenv("MAX_UPLOAD_SIZE", str(5 * 1024 * 1024)))  # 5MB
    allowed_image_extensions: list = field(default_factory=lambda: [".jpg", ".jpeg", ".png", ".gif", ".webp"])
    # Off by default: deleting a book keeps its stored cover
    purge_images_on_delete: bool = _flag("PURGE_IMAGES_ON_DELETE")


settings = Settings()
