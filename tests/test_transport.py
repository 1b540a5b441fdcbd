"""Unit tests for the httpx transport."""
import ast
import json
from pathlib import Path

import httpx
import pytest

import chatstream
from chatstream import ChatCompletion, HttpxTransport, StreamTransport, TransportError
from chatstream.chat import StreamingParams, build_request_options
from helpers import DONE_FRAME, frame

URL = "https://api.test/v1/chat/completions"
MESSAGES = [{"content": "hi", "role": "user"}]


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def sse_body(*frames: str):
    for text in frames:
        yield text.encode()


class TestStreamTransportInterface:
    """Tests for the abstract StreamTransport interface."""

    def test_transport_is_abstract(self):
        """Test that StreamTransport cannot be instantiated directly."""
        with pytest.raises(TypeError):
            StreamTransport()  # type: ignore

    @pytest.mark.parametrize("package", ["streaming", "transport"])
    def test_lower_layers_do_not_import_chat(self, package):
        """Test that streaming and transport never reach back into chat."""
        root = Path(chatstream.__file__).parent / package

        for path in root.glob("*.py"):
            tree = ast.parse(path.read_text())
            imported = [
                node.module or ""
                for node in ast.walk(tree)
                if isinstance(node, ast.ImportFrom)
            ]
            assert not [name for name in imported if "chat" in name.split(".")], path


class TestHttpxTransport:
    """Tests for HttpxTransport."""

    @pytest.mark.asyncio
    async def test_sends_headers_and_json_body(self, params):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["auth"] = request.headers["Authorization"]
            captured["type"] = request.headers["Content-Type"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, content=DONE_FRAME.encode())

        transport = HttpxTransport(client=mock_client(handler))
        options = build_request_options(params, MESSAGES)

        async with transport.open_stream(URL, options) as response:
            body = b"".join([chunk async for chunk in response.body])

        assert captured == {
            "method": "POST",
            "auth": "Bearer 12345",
            "type": "application/json",
            "body": {"model": "gpt-3.5-turbo", "messages": MESSAGES, "stream": True},
        }
        assert response.status_code == 200
        assert response.is_success
        assert body == DONE_FRAME.encode()

    @pytest.mark.asyncio
    async def test_error_status_is_reported(self, params):
        transport = HttpxTransport(client=mock_client(lambda request: httpx.Response(401)))

        async with transport.open_stream(URL, build_request_options(params, MESSAGES)) as response:
            assert response.status_code == 401
            assert response.reason == "Unauthorized"
            assert response.is_success is False

    @pytest.mark.asyncio
    async def test_no_content_has_no_body(self, params):
        transport = HttpxTransport(client=mock_client(lambda request: httpx.Response(204)))

        async with transport.open_stream(URL, build_request_options(params, MESSAGES)) as response:
            assert response.body is None

    @pytest.mark.asyncio
    async def test_network_error_is_wrapped(self, params):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = HttpxTransport(client=mock_client(handler))

        with pytest.raises(TransportError, match="connection refused") as exc:
            async with transport.open_stream(URL, build_request_options(params, MESSAGES)):
                pass

        assert isinstance(exc.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self):
        client = mock_client(lambda request: httpx.Response(200))

        async with HttpxTransport(client=client):
            pass

        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self):
        transport = HttpxTransport(timeout=5.0)

        await transport.close()

        assert transport._client.is_closed


class TestChatCompletionOverHttp:
    """End-to-end tests through HttpxTransport and a mocked server."""

    @pytest.mark.asyncio
    async def test_streamed_answer_is_assembled(self, clock):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"Content-Type": "text/event-stream"},
                content=sse_body(
                    frame(role="assistant", content=""),
                    frame(content="Hello"),
                    frame(content=" there"),
                    DONE_FRAME,
                ),
            )

        transport = HttpxTransport(client=mock_client(handler))
        chat = ChatCompletion(
            StreamingParams(api_key="k", model="gpt-4o-mini", temperature=0.9),
            transport,
            url=URL,
            clock=clock,
        )

        result = await chat.submit_prompt(MESSAGES)

        assert result.message.role == "assistant"
        assert result.message.content == "Hello there"
        assert len(result.message.meta.chunks) == 3
        assert result.message.meta.loading is False

    @pytest.mark.asyncio
    async def test_server_error_raises(self, params, clock):
        transport = HttpxTransport(client=mock_client(lambda request: httpx.Response(500)))
        chat = ChatCompletion(params, transport, url=URL, clock=clock)

        with pytest.raises(TransportError, match="500 - Internal Server Error"):
            await chat.submit_prompt(MESSAGES)

        assert chat.is_loading is False

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_real_api(self, api_keys):
        """Integration test: Stream a short answer from the real API."""
        if not api_keys["openai"]:
            pytest.skip("OPENAI_API_KEY not set")

        async with ChatCompletion(
            StreamingParams(api_key=api_keys["openai"], model="gpt-4o-mini", max_tokens=5)
        ) as chat:
            result = await chat.submit_prompt([{"content": "Say hi", "role": "user"}])

        assert result.message.role == "assistant"
        assert result.message.content
