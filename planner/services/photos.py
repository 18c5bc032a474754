import json
import logging

import redis

from planner.core.config import get_photo_bucket
from planner.core.redis_config import get_redis_client
from planner.services.backend import SupabaseClient

logger = logging.getLogger(__name__)

PHOTO_LIMIT = 100
PHOTO_CACHE_TTL = 300  # seconds

# Storage keeps this marker object in otherwise empty folders
FOLDER_PLACEHOLDER = ".emptyFolderPlaceholder"


def _cache_key(apartment_id: str) -> str:
    return f"apartment_photos:{apartment_id}"


def list_apartment_photos(backend: SupabaseClient, apartment_id: str, *, refresh: bool = False) -> list[str]:
    """Public URLs of the photos stored under ``<apartment_id>/``, sorted by name."""
    redis_client = get_redis_client()
    key = _cache_key(apartment_id)

    try:
        if refresh:
            redis_client.delete(key)
        else:
            cached = redis_client.get(key)
            if cached:
                return json.loads(cached)
    except redis.exceptions.RedisError as e:
        logger.warning("Photo cache unavailable for %s: %s", apartment_id, e)

    bucket = get_photo_bucket()
    objects = backend.list_objects(bucket, apartment_id, limit=PHOTO_LIMIT)
    paths = [
        f"{apartment_id}/{o['name']}"
        for o in objects
        if o.get("name") and not o["name"].endswith("/") and o["name"] != FOLDER_PLACEHOLDER
    ]
    urls = [backend.public_url(bucket, path) for path in paths]

    if urls:
        try:
            redis_client.set(key, json.dumps(urls), ex=PHOTO_CACHE_TTL)
        except redis.exceptions.RedisError as e:
            logger.warning("Could not cache photos for %s: %s", apartment_id, e)
    logger.debug("Listed %d photos for %s", len(urls), apartment_id)
    return urls
