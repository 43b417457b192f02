import os

from dotenv import load_dotenv


load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///feed.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    POSTS_PER_PAGE = int(os.getenv("POSTS_PER_PAGE", "10"))

    # Uploads larger than this are rejected by werkzeug with 413.
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(10 * 1024 * 1024)))

    # "local" keeps images on disk, "minio" puts them in the object store.
    IMAGE_STORAGE = os.getenv("IMAGE_STORAGE", "local").strip().lower()
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(BASE_DIR, "images"))
    IMAGE_CLEANUP_IN_BACKGROUND = _env_bool("IMAGE_CLEANUP_IN_BACKGROUND", True)

    MINIO_ENDPOINT = os.getenv("MINIO_ENDPOINT", "localhost:9000")
    MINIO_ACCESS_KEY = os.getenv("MINIO_ACCESS_KEY", "admin")
    MINIO_SECRET_KEY = os.getenv("MINIO_SECRET_KEY", "supersecret")
    MINIO_BUCKET = os.getenv("MINIO_BUCKET", "feed-images")
    MINIO_SECURE = _env_bool("MINIO_SECURE", False)
    MINIO_CONNECT_TIMEOUT = float(os.getenv("MINIO_CONNECT_TIMEOUT", "5"))
    MINIO_READ_TIMEOUT = float(os.getenv("MINIO_READ_TIMEOUT", "20"))
    MINIO_HTTP_POOL_MAXSIZE = int(os.getenv("MINIO_HTTP_POOL_MAXSIZE", "32"))
    MEDIA_LOCAL_FALLBACK_ENABLED = _env_bool(
        "MEDIA_LOCAL_FALLBACK_ENABLED",
        True,
    )
    MEDIA_CACHE_MAX_AGE_SECONDS = int(
        os.getenv("MEDIA_CACHE_MAX_AGE_SECONDS", str(7 * 24 * 60 * 60))
    )
    MEDIA_STREAM_CHUNK_SIZE = int(os.getenv("MEDIA_STREAM_CHUNK_SIZE", str(256 * 1024)))

    # Credentialed CORS cannot use a wildcard origin.
    _default_cors_origins = [
        "http://localhost:3000",
        r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    ]
    _cors_origins_raw = os.getenv("CORS_ALLOWED_ORIGINS", "").strip()
    if _cors_origins_raw:
        _cors_origins = [
            item.strip() for item in _cors_origins_raw.split(",") if item.strip()
        ]
        CORS_ALLOWED_ORIGINS = [
            origin for origin in _cors_origins if origin != "*"
        ] or _default_cors_origins
    else:
        CORS_ALLOWED_ORIGINS = _default_cors_origins
