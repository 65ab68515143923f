import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from redis import Redis
from redis.exceptions import RedisError

from app.model.complaint.complaint_request import ComplaintSubmission, serialize_submission
from app.service.complaint.errors import TransientInfra

logger = logging.getLogger(__name__)

# Drop the value from the tail side of the in-flight list and push it to the intake tail,
# only if it was actually there.
_REQUEUE_SCRIPT = """
if redis.call('LREM', KEYS[1], -1, ARGV[1]) > 0 then
    return redis.call('RPUSH', KEYS[2], ARGV[1])
end
return 0
"""


@contextmanager
def _store_errors(op: str, queue: str) -> Iterator[None]:
    try:
        yield
    except RedisError as e:
        logger.warning("queue store %s failed queue=%s error=%s", op, queue, e)
        raise TransientInfra(f"queue store unavailable during {op}", cause=e) from e


class RedisQueueStore:
    """
    Named ordered lists on Redis. Values are opaque serialized payloads and
    removal is by exact value.
    """

    def __init__(self, redis_client: Redis):
        self._redis = redis_client
        self._requeue_script = redis_client.register_script(_REQUEUE_SCRIPT)

    def reserve(self, source_queue: str, in_flight_queue: str) -> Optional[str]:
        with _store_errors("reserve", source_queue):
            return self._redis.lmove(source_queue, in_flight_queue, "LEFT", "RIGHT")

    def release(self, in_flight_queue: str, payload: str) -> bool:
        with _store_errors("release", in_flight_queue):
            removed = self._redis.lrem(in_flight_queue, 1, payload)
        if not removed:
            logger.debug("release found nothing to remove queue=%s", in_flight_queue)
        return bool(removed)

    def requeue(self, in_flight_queue: str, intake_queue: str, payload: str) -> bool:
        with _store_errors("requeue", in_flight_queue):
            pushed = self._requeue_script(keys=[in_flight_queue, intake_queue], args=[payload])
        if not pushed:
            logger.warning("requeue skipped, payload not in flight queue=%s", in_flight_queue)
        return bool(pushed)

    def push(self, queue: str, payload: str) -> int:
        with _store_errors("push", queue):
            return self._redis.rpush(queue, payload)

    def peek(self, queue: str) -> Optional[str]:
        with _store_errors("peek", queue):
            return self._redis.lindex(queue, 0)

    def pop(self, queue: str) -> Optional[str]:
        with _store_errors("pop", queue):
            return self._redis.lpop(queue)

    def length(self, queue: str) -> int:
        with _store_errors("length", queue):
            return int(self._redis.llen(queue))


def enqueue_submission(store: RedisQueueStore, intake_queue: str, submission: ComplaintSubmission) -> str:
    """Producer side: push a submission in its canonical wire form. Returns the pushed payload."""
    payload = serialize_submission(submission)
    store.push(intake_queue, payload)
    return payload
