"""Tests for tools/mcp_server.py - the buschgpt_query tool over MCP."""
import httpx
import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError
from mcp.shared.exceptions import McpError

from tools.mcp_server import TOOL_NAME, create_server


@pytest.fixture
def server(dispatcher):
    return create_server(dispatcher)


class TestToolDeclaration:
    @pytest.mark.asyncio
    async def test_single_tool_with_query_schema(self, server):
        async with Client(server) as client:
            tools = await client.list_tools()

        assert [tool.name for tool in tools] == ["buschgpt_query"]
        schema = tools[0].inputSchema
        assert schema["required"] == ["query"]
        assert schema["properties"]["query"]["type"] == "string"
        assert "Busch products" in tools[0].description


class TestToolCall:
    @pytest.mark.asyncio
    async def test_returns_answer_text(self, server, backend):
        async with Client(server) as client:
            result = await client.call_tool(
                TOOL_NAME, {"query": "What is the torque rating of product X?"}
            )

        assert result.content[0].text == "42 Nm"
        assert len(backend.issuer_calls) == 1
        assert len(backend.chat_calls) == 1

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server, backend):
        async with Client(server) as client:
            with pytest.raises((ToolError, McpError), match="Unknown tool"):
                await client.call_tool("buschgpt_translate", {"query": "hi"})

        assert backend.issuer_calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("arguments", [{}, {"query": 42}])
    async def test_invalid_params(self, server, backend, arguments):
        async with Client(server) as client:
            with pytest.raises((ToolError, McpError), match="validation error"):
                await client.call_tool(TOOL_NAME, arguments)

        assert backend.issuer_calls == []
        assert backend.chat_calls == []

    @pytest.mark.asyncio
    async def test_empty_query(self, server, backend):
        async with Client(server) as client:
            with pytest.raises(ToolError, match="Query parameter is required"):
                await client.call_tool(TOOL_NAME, {"query": ""})

        assert backend.issuer_calls == []

    @pytest.mark.asyncio
    async def test_chat_failure_is_internal_error(self, server, backend):
        backend.chat_reply = lambda request: httpx.Response(500, text="oops")

        async with Client(server) as client:
            with pytest.raises(ToolError, match="Failed to query BuschGPT") as exc_info:
                await client.call_tool(TOOL_NAME, {"query": "q"})

        assert "500 Internal Server Error" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_auth_failure_is_internal_error(self, server, backend):
        backend.issuer_reply = lambda request: httpx.Response(401, json={"error": "invalid_client"})

        async with Client(server) as client:
            with pytest.raises(ToolError, match="Failed to query BuschGPT: Authentication"):
                await client.call_tool(TOOL_NAME, {"query": "q"})

        assert backend.chat_calls == []
