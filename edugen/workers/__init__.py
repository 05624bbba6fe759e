"""
Background workers.

Exports:
  - WorkerPool: Bounded asyncio worker pool over the job store
"""

from edugen.workers.job_queue import WorkerPool

__all__ = ["WorkerPool"]
