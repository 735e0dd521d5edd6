"""Background job processing with ARQ.

Provides Redis-based async background job processing with:
- Async-native execution (no thread pool overhead)
- Job scheduling and retries
- Cron job support
"""

from app.core.jobs.registry import enqueue, get_arq_pool, init_arq_pool
from app.core.jobs.worker import WorkerSettings


__all__ = [
    "WorkerSettings",
    "enqueue",
    "get_arq_pool",
    "init_arq_pool",
]
