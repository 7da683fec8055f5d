"""
Request planning, output normalization, materialization and orchestration.
"""
from .materializer import ResourceMaterializer
from .normalizer import classify_output, normalize
from .orchestrator import GenerationOrchestrator
from .request_plan import GenerationRequest, parse_request

__all__ = [
    "GenerationOrchestrator",
    "GenerationRequest",
    "ResourceMaterializer",
    "classify_output",
    "normalize",
    "parse_request",
]
