from typing import Dict, Any, Optional, List
import inspect
import structlog

from structgen.domain.models.generation import (
    FieldUpdateEvent, ProgressEvent, ProgressSink, ProgressStage
)
from structgen.domain.streaming.field_extractor import FieldStreamExtractor, FieldUpdate

logger = structlog.get_logger(__name__)


class StreamingHandler:
    """Routes lifecycle events and streamed field updates to a progress sink"""

    def __init__(self, sink: Optional[ProgressSink] = None):
        self.sink = sink
        self.extractor: Optional[FieldStreamExtractor] = None

    @property
    def enabled(self) -> bool:
        return self.sink is not None

    async def send_progress(
        self,
        stage: ProgressStage,
        message: str,
        data: Optional[Dict[str, Any]] = None
    ):
        """Send a lifecycle event to the sink"""

        await self._emit(ProgressEvent(stage=stage, message=message, data=data))

    def start_stream(self) -> FieldStreamExtractor:
        """Begin a new response stream with a fresh extractor"""

        self.extractor = FieldStreamExtractor()
        return self.extractor

    async def stream_chunk(self, chunk: str):
        """Feed a chunk of the live response; used as a generation stream sink"""

        if self.extractor is None:
            self.start_stream()
        await self._emit_updates(self.extractor.feed(chunk))

    async def finish_stream(self) -> str:
        """Flush the extractor and return the full streamed response"""

        if self.extractor is None:
            return ""
        await self._emit_updates(self.extractor.finish())
        full_response = self.extractor.full_response
        self.extractor = None
        return full_response

    async def _emit_updates(self, updates: List[FieldUpdate]):
        for update in updates:
            await self._emit(FieldUpdateEvent(field=update.field, value=update.value))

    async def _emit(self, event):
        if self.sink is None:
            return

        try:
            result = self.sink(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error("Error in progress sink",
                         stage=event.stage.value,
                         error=str(e))
