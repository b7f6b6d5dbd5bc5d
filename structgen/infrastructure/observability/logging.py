import structlog
import logging
import sys
from typing import Dict, Any, List, Optional

from structgen.infrastructure.config.settings import get_settings


def build_processors(log_format: str) -> List[Any]:
    """Processor chain for structlog, ending in a json or console renderer"""

    renderer = structlog.processors.JSONRenderer() if log_format == "json" else structlog.dev.ConsoleRenderer()
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    service_name: Optional[str] = None
) -> None:
    """Configure stdlib logging and structlog from arguments or STRUCTGEN_* settings"""

    settings = get_settings()
    level_name = (log_level or settings.log_level).upper()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO)
    )

    structlog.configure(
        processors=build_processors(log_format or settings.log_format),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(
        service=service_name or settings.service_name,
        environment=settings.environment,
        version=settings.service_version
    )


class GenerationLogger:
    """Specialized logger for generation runs"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def log_tool_execution(
        self,
        provider: str,
        capability: str,
        parameters: Dict[str, Any],
        duration_ms: Optional[float] = None,
        success: bool = True,
        error: Optional[str] = None
    ):
        """Log a capability invocation"""

        log = self.logger.info if success else self.logger.error
        log(
            "tool_execution",
            provider=provider,
            capability=capability,
            parameters=parameters,
            duration_ms=round(duration_ms, 2) if duration_ms is not None else None,
            success=success,
            error=error
        )

    def log_workflow_transition(
        self,
        from_node: str,
        to_node: str,
        state_summary: Optional[Dict[str, Any]] = None
    ):
        self.logger.debug(
            "workflow_transition",
            from_node=from_node,
            to_node=to_node,
            state_summary=state_summary or {}
        )

    def log_fallback(self, stage: str, reason: str, fallback: str, **kwargs):
        """Log a decision that fell back to its default"""

        self.logger.warning(
            "decision_fallback",
            stage=stage,
            reason=reason,
            fallback=fallback,
            **kwargs
        )


generation_logger = GenerationLogger("structgen")
