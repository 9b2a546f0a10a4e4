"""LLM-powered generation services."""

from coldcopy.core.interfaces import StageExecutor

from .batch import BatchCoordinator
from .deliverability import analyze_deliverability
from .llm import OpenAIChatExecutor
from .orchestrator import GenerationOrchestrator, next_angle
from .pipeline import GenerationPipeline, StageDescriptor
from .suggestions import SuggestionService

__all__ = [
    "BatchCoordinator",
    "GenerationOrchestrator",
    "GenerationPipeline",
    "OpenAIChatExecutor",
    "StageDescriptor",
    "StageExecutor",
    "SuggestionService",
    "analyze_deliverability",
    "next_angle",
]
