from typing import Dict, Any, List, Optional, Callable, Awaitable, Literal, Type, Union
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from enum import Enum


# Awaited with each text chunk as it arrives from the generation service
StreamSink = Callable[[str], Awaitable[None]]


class MessageRole(str, Enum):
    """Chat message roles understood by generation services"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class RunStatus(str, Enum):
    """Terminal status of a generation run"""
    SUCCESS = "success"
    ERROR = "error"


class CapabilityProvider(BaseModel):
    """External service exposing discoverable capabilities"""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Provider name, used to address its capabilities")
    description: str = Field("", description="What the provider is good for")
    address: str = Field(description="Base url of the provider")


class Capability(BaseModel):
    """A named operation discovered on a capability provider"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    description: str = ""
    input_shape: Dict[str, Any] = Field(
        default_factory=dict,
        alias="inputSchema",
        description="Provider-declared JSON schema of the capability parameters"
    )


class ChatMessage(BaseModel):
    """Single message sent to the generation service"""
    role: MessageRole
    content: str


class SamplingOptions(BaseModel):
    """Sampling options for one generation call"""
    temperature: float = 0.7
    max_tokens: int = 4000


class GenerationRequest(BaseModel):
    """One call to the generation service"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    messages: List[ChatMessage]
    options: SamplingOptions = Field(default_factory=SamplingOptions)
    stream_sink: Optional[StreamSink] = Field(None, exclude=True)

    @property
    def is_streaming(self) -> bool:
        return self.stream_sink is not None


class ToolInvocation(BaseModel):
    """Record of one capability invocation during a run"""
    provider: str
    capability: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    duration_ms: Optional[float] = None

    @property
    def key(self) -> str:
        return f"{self.provider}.{self.capability}"


class OrchestratorConfig(BaseModel):
    """Static configuration of a generation orchestrator"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field("unnamed-agent", description="Name used in logs and run records")
    llm: str = Field("unknown", description="Generation model identifier, for run records")
    input_shape: Type[BaseModel]
    output_shape: Type[BaseModel]
    providers: List[CapabilityProvider] = Field(default_factory=list)
    system_prompt: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    analytics_url: Optional[str] = None


class RunRecord(BaseModel):
    """Telemetry describing one completed or failed run"""
    id: str
    agent_name: str
    llm: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    duration_ms: float = 0.0
    status: RunStatus = RunStatus.SUCCESS
    input: Dict[str, Any] = Field(default_factory=dict)
    output: Dict[str, Any] = Field(default_factory=dict)
    tool_invocations: List[ToolInvocation] = Field(default_factory=list)
    raw_prompt: Optional[str] = None
    raw_response: Optional[str] = None
    error: Optional[str] = None


class ProgressStage(str, Enum):
    """Lifecycle stages reported to a progress sink"""
    INPUT_RESOLUTION = "input_resolution"
    SERVER_SELECTION = "server_selection"
    TOOL_DISCOVERY = "tool_discovery"
    TOOL_INVOCATION = "tool_invocation"
    RESPONSE_GENERATION = "response_generation"
    STREAMING = "streaming"


class ProgressEvent(BaseModel):
    """Lifecycle event"""
    stage: ProgressStage
    message: str
    data: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class FieldUpdateEvent(BaseModel):
    """Text appended to a field while the response streams in"""
    stage: Literal[ProgressStage.STREAMING] = ProgressStage.STREAMING
    field: str
    value: str


# Caller-supplied receiver of lifecycle and field-update events, sync or async
ProgressSink = Callable[[Union[ProgressEvent, FieldUpdateEvent]], Any]
