"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from edugen.boundary.db.CRUD import job_crud

    job = await job_crud.get_by_id(session, job_id)
"""

from edugen.boundary.db.CRUD.base_crud import BaseCRUD
from edugen.boundary.db.CRUD.content_crud import ContentCRUD, content_crud
from edugen.boundary.db.CRUD.job_crud import JobCRUD, job_crud

__all__ = [
    "BaseCRUD",
    "JobCRUD",
    "job_crud",
    "ContentCRUD",
    "content_crud",
]
