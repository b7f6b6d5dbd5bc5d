from typing import Optional
import httpx
import structlog

from structgen.domain.models.generation import RunRecord
from structgen.domain.orchestration.interfaces import RunReporter

logger = structlog.get_logger(__name__)


class AnalyticsReporter(RunReporter):
    """Posts run records to an analytics endpoint; never fails the run"""

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self.url = url
        self.client = client
        self.timeout = timeout

    async def report(self, record: RunRecord) -> None:
        payload = record.model_dump(mode="json")
        try:
            if self.client is not None:
                response = await self.client.post(self.url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to send analytics", url=self.url, run_id=record.id, error=str(e))
