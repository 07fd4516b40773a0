"""Phase task catalog: templates and generation."""

from .templates import TaskTemplate, TASK_TEMPLATES_BY_AREA, get_templates
from .generator import CatalogGenerator, GenerationResult

__all__ = [
    "TaskTemplate",
    "TASK_TEMPLATES_BY_AREA",
    "get_templates",
    "CatalogGenerator",
    "GenerationResult",
]
