"""
Job kind handlers.

Exports:
  - HandlerRegistry, JobHandler: Kind dispatch
  - SyllabusGenerationHandler, QuestionsBatchHandler, ContentEnhancementHandler
"""

from edugen.workers.handlers.enhancement import ContentEnhancementHandler
from edugen.workers.handlers.questions import QuestionsBatchHandler
from edugen.workers.handlers.registry import HandlerRegistry, JobHandler
from edugen.workers.handlers.syllabus import SyllabusGenerationHandler

__all__ = [
    "HandlerRegistry",
    "JobHandler",
    "SyllabusGenerationHandler",
    "QuestionsBatchHandler",
    "ContentEnhancementHandler",
]
