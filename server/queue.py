"""Redis queue shared by the API (producer) and the rq worker (consumer)."""

from redis import Redis
from rq import Queue
from rq.job import Job

from .config import settings

QUEUE_NAME = 'link-audits'
AUDIT_TASK = 'worker.tasks.run_audit_task'


def get_redis() -> Redis:
    return Redis.from_url(settings.redis_url)


def get_queue(connection: Redis | None = None) -> Queue:
    """Get the audit queue, opening a connection if none is given."""
    return Queue(QUEUE_NAME, connection=connection or get_redis())


def enqueue_audit(audit_id: str, payload: dict) -> Job:
    """Queue one audit run; the worker imports the task by dotted path."""
    return get_queue().enqueue(
        AUDIT_TASK,
        audit_id,
        payload,
        job_id=audit_id,
        job_timeout=settings.job_timeout_s,
    )
