"""
Prompt-to-image generation on Replicate-hosted models.
"""
from .config import load_config
from .errors import ErrorKind, GenerationError, classify
from .tasks.orchestrator import GenerationOrchestrator

__all__ = ["load_config", "ErrorKind", "GenerationError", "GenerationOrchestrator", "classify"]
