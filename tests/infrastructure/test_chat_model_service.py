import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from structgen.domain.errors import GenerationError
from structgen.domain.models.generation import ChatMessage, GenerationRequest, MessageRole
from structgen.infrastructure.generation.chat_model_service import (
    ChatModelGenerationService, content_text, to_langchain_messages
)


def _request(**kwargs):
    return GenerationRequest(
        messages=[
            ChatMessage(role=MessageRole.SYSTEM, content="be brief"),
            ChatMessage(role=MessageRole.USER, content="<request><q>hi</q></request>"),
        ],
        **kwargs
    )


def test_to_langchain_messages():
    converted = to_langchain_messages([
        ChatMessage(role=MessageRole.SYSTEM, content="s"),
        ChatMessage(role=MessageRole.USER, content="u"),
        ChatMessage(role=MessageRole.ASSISTANT, content="a"),
    ])
    assert [type(message) for message in converted] == [SystemMessage, HumanMessage, AIMessage]
    assert [message.content for message in converted] == ["s", "u", "a"]


def test_content_text():
    assert content_text("plain") == "plain"
    assert content_text(["a", {"type": "text", "text": "b"}, {"type": "image_url"}]) == "ab"
    assert content_text(None) == ""


@pytest.mark.asyncio
async def test_generate():
    service = ChatModelGenerationService(FakeListChatModel(responses=["<answer>hello</answer>"]))
    assert await service.generate(_request()) == "<answer>hello</answer>"


@pytest.mark.asyncio
async def test_generate_streaming():
    chunks = []

    async def sink(chunk):
        chunks.append(chunk)

    service = ChatModelGenerationService(FakeListChatModel(responses=["<a>hi there</a>"]))
    response = await service.generate(_request(stream_sink=sink))

    assert response == "<a>hi there</a>"
    assert "".join(chunks) == response
    assert len(chunks) > 1


@pytest.mark.asyncio
async def test_generate_without_sampling_options():
    service = ChatModelGenerationService(FakeListChatModel(responses=["ok"]), pass_sampling_options=False)
    assert await service.generate(_request()) == "ok"


@pytest.mark.asyncio
async def test_model_failure_is_generation_error():
    service = ChatModelGenerationService(FakeListChatModel(responses=[]))
    with pytest.raises(GenerationError):
        await service.generate(_request())
