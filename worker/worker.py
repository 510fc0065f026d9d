"""RQ worker for link audit jobs.

Run with ``python -m worker.worker``; Playwright's browsers must be installed
on the worker host (``playwright install chromium``).
"""

import logging

from rq import Worker

from server.queue import get_queue, get_redis


def main() -> None:
    """Start worker process."""
    logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
    redis = get_redis()
    worker = Worker([get_queue(redis)], connection=redis)
    worker.work()


if __name__ == '__main__':
    main()
