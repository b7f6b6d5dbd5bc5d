import json

import httpx
import pytest

from structgen.domain.models.generation import RunRecord, RunStatus
from structgen.infrastructure.analytics.reporter import AnalyticsReporter


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestAnalyticsReporter:

    @pytest.mark.asyncio
    async def test_posts_run_record(self):
        posted = []

        def handler(request):
            posted.append((str(request.url), json.loads(request.content)))
            return httpx.Response(204)

        record = RunRecord(id="abc123", agent_name="qa", llm="fake", input={"q": "x"}, output={"a": 1})
        async with _client(handler) as http:
            await AnalyticsReporter("http://analytics.test/runs", client=http).report(record)

        url, body = posted[0]
        assert url == "http://analytics.test/runs"
        assert body["id"] == "abc123"
        assert body["status"] == RunStatus.SUCCESS.value
        assert body["input"] == {"q": "x"}
        assert isinstance(body["timestamp"], str)

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self):
        record = RunRecord(id="abc123", agent_name="qa", llm="fake")
        async with _client(lambda request: httpx.Response(500)) as http:
            await AnalyticsReporter("http://analytics.test/runs", client=http).report(record)
