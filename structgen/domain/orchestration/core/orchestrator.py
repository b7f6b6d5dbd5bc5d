from typing import TypedDict, List, Dict, Any, Optional, Literal
from langgraph.graph import StateGraph, END
from pydantic import BaseModel, ValidationError
import structlog
import time
import uuid
from datetime import datetime

from structgen.domain.codec.tag_codec import encode
from structgen.domain.context.context_manager import ContextManager
from structgen.domain.errors import GenerationError, InputValidationError, StructgenError
from structgen.domain.models.generation import (
    CapabilityProvider, GenerationRequest, OrchestratorConfig, ProgressSink,
    ProgressStage, RunRecord, RunStatus, SamplingOptions, ToolInvocation
)
from structgen.domain.orchestration.interfaces import CapabilityClient, GenerationService, RunReporter
from structgen.domain.orchestration.subagent.capability_selector import CapabilitySelector
from structgen.domain.orchestration.subagent.field_resolver import FieldResolver
from structgen.domain.orchestration.subagent.parameter_synthesizer import ParameterSynthesizer
from structgen.domain.orchestration.subagent.provider_selector import ProviderSelector
from structgen.domain.schema.reconciler import reconcile
from structgen.domain.schema.shape_descriptor import ShapeDescriptor
from structgen.domain.streaming.streaming_handler import StreamingHandler
from structgen.domain.tool.tool_executor import ToolExecutor
from structgen.domain.tool.tool_registry import ProviderRegistry
from structgen.infrastructure.analytics.reporter import AnalyticsReporter
from structgen.infrastructure.config.settings import get_settings
from structgen.infrastructure.observability.logging import generation_logger

logger = structlog.get_logger(__name__)


class WorkflowState(TypedDict, total=False):
    """State for the generation graph"""
    request_id: str
    raw_input: Dict[str, Any]
    input: Dict[str, Any]
    streamer: StreamingHandler
    selected_providers: List[CapabilityProvider]
    tool_results: Dict[str, Any]
    tool_invocations: List[ToolInvocation]
    raw_prompt: str
    raw_response: str
    reconciled: Dict[str, Any]
    output: Dict[str, Any]
    agent_chain_trace: List[str]


class GenerationOrchestrator:
    """Fills a declared output shape, optionally using capabilities discovered at runtime.

    The orchestrator holds static configuration only and may be shared by
    concurrent runs; all per-run data lives in the graph state.
    """

    def __init__(
        self,
        config: OrchestratorConfig,
        generation: GenerationService,
        capabilities: Optional[CapabilityClient] = None,
        reporter: Optional[RunReporter] = None
    ):
        self.config = config
        self.descriptor = ShapeDescriptor(config.output_shape)
        self.descriptor.ensure_no_arrays()

        settings = get_settings()
        self.options = SamplingOptions(
            temperature=config.temperature if config.temperature is not None else settings.default_temperature,
            max_tokens=config.max_tokens or settings.default_max_tokens
        )

        self.generation = generation
        self.registry = ProviderRegistry(config.providers)
        self.executor = ToolExecutor(capabilities) if capabilities is not None else None
        analytics_url = config.analytics_url or settings.analytics_url
        if reporter is None and analytics_url:
            reporter = AnalyticsReporter(analytics_url, timeout=settings.http_timeout)
        self.reporter = reporter
        self.context_manager = ContextManager(self.descriptor, config.system_prompt)

        self.provider_selector = ProviderSelector(generation)
        self.capability_selector = CapabilitySelector(generation)
        self.parameter_synthesizer = ParameterSynthesizer(generation)
        self.field_resolver = (
            FieldResolver(generation, self.executor, self.parameter_synthesizer)
            if self.executor is not None else None
        )

        if len(self.registry) and self.executor is None:
            raise StructgenError("Capability providers are configured but no capability client was given")

        self.workflow = self._create_workflow()

    def _create_workflow(self):
        """Create the generation workflow graph"""

        workflow = StateGraph(WorkflowState)

        workflow.add_node("input_validator", self.input_validation_node)
        workflow.add_node("field_resolver", self.field_resolution_node)
        workflow.add_node("provider_selector", self.provider_selection_node)
        workflow.add_node("tool_executor", self.tool_execution_node)
        workflow.add_node("response_generator", self.response_generation_node)
        workflow.add_node("reconciler", self.reconciliation_node)
        workflow.add_node("output_validator", self.output_validation_node)

        workflow.set_entry_point("input_validator")
        workflow.add_edge("input_validator", "field_resolver")

        # Provider selection and tool use only happen with configured providers
        workflow.add_conditional_edges(
            "field_resolver",
            self.route_after_resolution,
            {
                "with_providers": "provider_selector",
                "without_providers": "response_generator"
            }
        )

        workflow.add_edge("provider_selector", "tool_executor")
        workflow.add_edge("tool_executor", "response_generator")
        workflow.add_edge("response_generator", "reconciler")
        workflow.add_edge("reconciler", "output_validator")
        workflow.add_edge("output_validator", END)

        return workflow.compile()

    def route_after_resolution(self, state: WorkflowState) -> Literal["with_providers", "without_providers"]:
        return "with_providers" if len(self.registry) else "without_providers"

    def _trace(self, state: WorkflowState, node: str) -> List[str]:
        trace = list(state.get("agent_chain_trace", []))
        if trace:
            generation_logger.log_workflow_transition(trace[-1], node)
        trace.append(node)
        return trace

    async def input_validation_node(self, state: WorkflowState) -> Dict[str, Any]:
        """Validate the run input against the declared input shape"""

        try:
            validated = self.config.input_shape.model_validate(state["raw_input"])
        except ValidationError as e:
            logger.error("Input validation failed", errors=e.errors(include_url=False))
            raise InputValidationError(
                "Input validation failed. Please check the provided input against the agent's input format.",
                errors=e.errors(include_url=False)
            ) from e

        return {
            "input": validated.model_dump(mode="json"),
            "agent_chain_trace": self._trace(state, "input_validator")
        }

    async def field_resolution_node(self, state: WorkflowState) -> Dict[str, Any]:
        """Resolve input fields that name a capability provider"""

        input_data = state["input"]
        if self.field_resolver is not None:
            await state["streamer"].send_progress(
                ProgressStage.INPUT_RESOLUTION, "Resolving MCP-dependent input fields..."
            )
            input_data = await self.field_resolver.decide(
                input_data, self.config.input_shape, state["streamer"]
            )

        return {
            "input": input_data,
            "agent_chain_trace": self._trace(state, "field_resolver")
        }

    async def provider_selection_node(self, state: WorkflowState) -> Dict[str, Any]:
        """Select the providers relevant to the input"""

        streamer = state["streamer"]
        await streamer.send_progress(
            ProgressStage.SERVER_SELECTION, "Analyzing input to determine relevant servers..."
        )

        selected = await self.provider_selector.decide(state["input"], self.registry)

        await streamer.send_progress(
            ProgressStage.SERVER_SELECTION,
            f"Selected {len(selected)} relevant servers",
            data={"servers": [provider.name for provider in selected]}
        )
        logger.info("Selected providers", providers=[provider.name for provider in selected])

        return {
            "selected_providers": selected,
            "agent_chain_trace": self._trace(state, "provider_selector")
        }

    async def tool_execution_node(self, state: WorkflowState) -> Dict[str, Any]:
        """Discover, select and invoke capabilities of every selected provider, in order"""

        streamer = state["streamer"]
        input_data = state["input"]
        tool_results: Dict[str, Any] = {}
        invocations: List[ToolInvocation] = []

        providers = state.get("selected_providers", [])
        if providers:
            await streamer.send_progress(ProgressStage.TOOL_DISCOVERY, "Discovering available tools...")

        for provider in providers:
            capabilities = await self.executor.discover(provider)
            if not capabilities:
                continue

            selected = await self.capability_selector.decide(input_data, provider, capabilities)
            for capability in selected:
                await streamer.send_progress(
                    ProgressStage.TOOL_INVOCATION,
                    f"Invoking {provider.name}.{capability.name}..."
                )
                parameters = await self.parameter_synthesizer.decide(input_data, capability)
                invocation = await self.executor.execute(provider, capability, parameters)
                invocations.append(invocation)
                tool_results[invocation.key] = invocation.result

        return {
            "tool_results": tool_results,
            "tool_invocations": invocations,
            "agent_chain_trace": self._trace(state, "tool_executor")
        }

    async def response_generation_node(self, state: WorkflowState) -> Dict[str, Any]:
        """Generate the final answer, streaming field updates when a sink is attached"""

        streamer = state["streamer"]
        await streamer.send_progress(ProgressStage.RESPONSE_GENERATION, "Generating final response...")

        prompt = self.context_manager.build_prompt(state["input"], state.get("tool_results", {}))
        request = GenerationRequest(
            messages=self.context_manager.build_messages(prompt),
            options=self.options,
            stream_sink=streamer.stream_chunk if streamer.enabled else None
        )

        if request.is_streaming:
            streamer.start_stream()
        try:
            response = await self.generation.generate(request)
        except StructgenError:
            raise
        except Exception as e:
            logger.error("Response generation failed", error=str(e))
            raise GenerationError(f"Response generation failed: {e}", stage="response_generator") from e
        finally:
            if request.is_streaming:
                await streamer.finish_stream()

        return {
            "raw_prompt": encode(prompt),
            "raw_response": response or "",
            "agent_chain_trace": self._trace(state, "response_generator")
        }

    async def reconciliation_node(self, state: WorkflowState) -> Dict[str, Any]:
        """Decode the response and align it with the declared output fields"""

        reconciled = reconcile(state.get("raw_response", ""), self.descriptor)
        return {
            "reconciled": reconciled,
            "agent_chain_trace": self._trace(state, "reconciler")
        }

    async def output_validation_node(self, state: WorkflowState) -> Dict[str, Any]:
        """Validate the reconciled record; an invalid record becomes {}"""

        reconciled = state.get("reconciled", {})
        output: Dict[str, Any] = {}
        if reconciled:
            try:
                output = self.config.output_shape.model_validate(reconciled).model_dump(mode="json")
            except ValidationError as e:
                logger.warning("Output validation failed, returning empty result",
                               fields=list(reconciled),
                               errors=e.errors(include_url=False))

        return {
            "output": output,
            "agent_chain_trace": self._trace(state, "output_validator")
        }

    async def run(self, input_data: Dict[str, Any], progress: Optional[ProgressSink] = None) -> Dict[str, Any]:
        """Run the workflow for one input and return the validated output"""

        if isinstance(input_data, BaseModel):
            input_data = input_data.model_dump(mode="json")

        request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()
        started_at = datetime.utcnow()

        initial_state: WorkflowState = {
            "request_id": request_id,
            "raw_input": input_data,
            "streamer": StreamingHandler(progress),
            "tool_results": {},
            "tool_invocations": [],
            "agent_chain_trace": [],
        }

        with structlog.contextvars.bound_contextvars(request_id=request_id, agent=self.config.name):
            logger.info("Starting generation run", llm=self.config.llm)
            try:
                final_state = await self.workflow.ainvoke(initial_state)
            except Exception as e:
                logger.error("Generation run failed", error=str(e))
                await self._report(RunRecord(
                    id=request_id,
                    agent_name=self.config.name,
                    llm=self.config.llm,
                    timestamp=started_at,
                    duration_ms=(time.perf_counter() - started) * 1000,
                    status=RunStatus.ERROR,
                    input=input_data,
                    error=str(e)
                ))
                raise

            output = final_state.get("output", {})
            await self._report(RunRecord(
                id=request_id,
                agent_name=self.config.name,
                llm=self.config.llm,
                timestamp=started_at,
                duration_ms=(time.perf_counter() - started) * 1000,
                status=RunStatus.SUCCESS,
                input=input_data,
                output=output,
                tool_invocations=final_state.get("tool_invocations", []),
                raw_prompt=final_state.get("raw_prompt"),
                raw_response=final_state.get("raw_response")
            ))
            logger.info("Generation run completed", trace=final_state.get("agent_chain_trace", []))
            return output

    async def _report(self, record: RunRecord):
        if self.reporter is None:
            return
        try:
            await self.reporter.report(record)
        except Exception as e:
            logger.warning("Failed to report run", error=str(e))
