"""Background job tasks.

This package contains all background job implementations.
Each task module should define async functions that can be
registered in the worker.
"""

from app.core.jobs.tasks.capacity import run_capacity_pass_job
from app.core.jobs.tasks.migrations import recover_migrations_job


__all__ = [
    "recover_migrations_job",
    "run_capacity_pass_job",
]
