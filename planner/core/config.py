import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./planner.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Hosted backend (auth, storage, admin procedures)
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
PHOTO_BUCKET = os.getenv("PHOTO_BUCKET", "apartment-photos")

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CREATE_TABLES = os.getenv("CREATE_TABLES", "false").lower() in ("1", "true", "yes")


def get_database_url():
    return DATABASE_URL


def get_redis_url():
    return REDIS_URL


def get_backend_settings() -> dict:
    return {
        "url": SUPABASE_URL.rstrip("/"),
        "anon_key": SUPABASE_ANON_KEY,
        "service_key": SUPABASE_SERVICE_ROLE_KEY,
    }


def get_photo_bucket():
    return PHOTO_BUCKET
