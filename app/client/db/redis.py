import logging

from redis import Redis

logger = logging.getLogger(__name__)


def build_redis_client(redis_url: str) -> Redis:
    # surrogateescape keeps non-UTF-8 payloads byte-exact through LMOVE/LREM round trips
    client = Redis.from_url(
        redis_url,
        decode_responses=True,
        encoding_errors="surrogateescape",
        socket_timeout=5,
        socket_connect_timeout=5,
    )
    logger.info("redis client created")
    return client
