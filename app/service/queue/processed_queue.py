import json
import logging
from typing import Any, Optional

from app.model.complaint.complaint_response import ComplaintResponse
from app.service.queue.queue_store import RedisQueueStore

logger = logging.getLogger(__name__)


class ProcessedComplaintQueue:
    """Persisted, non-duplicate complaints waiting for the hashing/notification service."""

    def __init__(self, store: RedisQueueStore, queue_name: str):
        self._store = store
        self.queue_name = queue_name

    def push_to_queue(self, complaint: ComplaintResponse) -> int:
        payload = complaint.model_dump_json(by_alias=True)
        length = self._store.push(self.queue_name, payload)
        logger.info("complaint forwarded id=%s queue_length=%s", complaint.id, length)
        return length

    def peek_queue(self) -> Optional[dict[str, Any]]:
        return _decode(self._store.peek(self.queue_name))

    def pop_from_queue(self) -> Optional[dict[str, Any]]:
        return _decode(self._store.pop(self.queue_name))

    def get_queue_length(self) -> int:
        return self._store.length(self.queue_name)


def _decode(raw: Optional[str]) -> Optional[dict[str, Any]]:
    if raw is None:
        return None
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        logger.error("undecodable entry on processed queue payload=%s", raw)
        return None
    return decoded if isinstance(decoded, dict) else None
