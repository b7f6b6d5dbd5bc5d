from structgen.domain.codec.tag_codec import decode, encode, extract_tag_content, sanitize_tag_name
from structgen.domain.errors import (
    CapabilityError, GenerationError, InputValidationError, InvalidURLError,
    OutputShapeError, StructgenError
)
from structgen.domain.models.generation import (
    Capability, CapabilityProvider, ChatMessage, FieldUpdateEvent, GenerationRequest,
    OrchestratorConfig, ProgressEvent, ProgressStage, RunRecord, SamplingOptions, ToolInvocation
)
from structgen.domain.orchestration.core.orchestrator import GenerationOrchestrator
from structgen.domain.orchestration.interfaces import CapabilityClient, GenerationService, RunReporter
from structgen.domain.schema.shape_descriptor import ShapeDescriptor
from structgen.domain.streaming.field_extractor import FieldStreamExtractor, FieldUpdate
from structgen.infrastructure.capability.http_client import HttpCapabilityClient
from structgen.infrastructure.generation.chat_model_service import ChatModelGenerationService
from structgen.infrastructure.observability.logging import setup_logging

__all__ = [
    "Capability",
    "CapabilityClient",
    "CapabilityError",
    "CapabilityProvider",
    "ChatMessage",
    "ChatModelGenerationService",
    "FieldStreamExtractor",
    "FieldUpdate",
    "FieldUpdateEvent",
    "GenerationError",
    "GenerationOrchestrator",
    "GenerationRequest",
    "GenerationService",
    "HttpCapabilityClient",
    "InputValidationError",
    "InvalidURLError",
    "OrchestratorConfig",
    "OutputShapeError",
    "ProgressEvent",
    "ProgressStage",
    "RunRecord",
    "RunReporter",
    "SamplingOptions",
    "ShapeDescriptor",
    "StructgenError",
    "ToolInvocation",
    "decode",
    "encode",
    "extract_tag_content",
    "sanitize_tag_name",
    "setup_logging",
]
