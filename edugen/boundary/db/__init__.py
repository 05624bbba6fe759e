"""
Database boundary layer: ORM models, CRUD operations, stores and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(): Async connection management
  - JobModel, ContentModel: ORM tables
  - JobStore, ContentStore: Transactional facades used by the pipeline

Dependencies: sqlalchemy, edugen.configs
System role: Durable storage for generation jobs and embedded content
"""

from edugen.boundary.db.base import Base, TimestampMixin, UUIDMixin
from edugen.boundary.db.connection import get_async_engine, get_async_session_factory
from edugen.boundary.db.content_store import ContentStore
from edugen.boundary.db.job_store import JobStore
from edugen.boundary.db.models import ContentModel, JobModel

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "get_async_engine",
    "get_async_session_factory",
    "JobModel",
    "ContentModel",
    "JobStore",
    "ContentStore",
]
