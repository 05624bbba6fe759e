"""
Application services.

Exports:
  - JobService: Submission API for generation jobs
"""

from edugen.application.services.job_service import JobService

__all__ = ["JobService"]
