"""
Database models package.

Exports:
  - JobModel: Generation job ORM model
  - ContentModel: Topic/question ORM model with embedding reference copy

Dependencies: sqlalchemy, edugen.boundary.db.base
System role: Database model definitions for domain entities
"""

from edugen.boundary.db.models.content_model import ContentModel
from edugen.boundary.db.models.job_model import JobModel

__all__ = ["JobModel", "ContentModel"]
