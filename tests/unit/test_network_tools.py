"""Unit tests for the HTTP, scraping, ping and host-inspection tools.

HTTP traffic goes through ``httpx.MockTransport``; nothing leaves the process.
"""

from __future__ import annotations

import json
import os
from typing import Any

import httpx
import pytest

from contracts.api import Outcome
from contracts.errors import ArgumentValidationError
from contracts.tool_sdk import BaseTool
from runtime.tools.base import check_args
from runtime.tools.get_system_info import GetSystemInfoTool, system_info
from runtime.tools.list_processes import ListProcessesTool
from runtime.tools.make_http_request import MakeHttpRequestTool
from runtime.tools.ping import PingTool, parse_ping_output, ping_command
from runtime.tools.scrape_web import ScrapeWebTool, extract


# ── Helpers ─────────────────────────────────────────────────────────


async def _run(tool: BaseTool, args: dict[str, Any]) -> Outcome:
    definition = tool.definition()
    return await definition.handler(check_args(definition, args))


def _echo(request: httpx.Request) -> httpx.Response:
    """Reflect the request back as JSON."""
    return httpx.Response(
        200,
        json={
            "method": request.method,
            "path": request.url.path,
            "query": dict(request.url.params),
            "body": request.content.decode(),
            "header": request.headers.get("x-test"),
            "auth": request.headers.get("authorization"),
        },
        headers={"x-served-by": "mock"},
    )


PAGE = """
<html><head><title>Demo</title></head>
<body>
  <h1>Title   here</h1>
  <p class="note">first</p>
  <p class="note">second</p>
  <a href="/about">About</a>
  <a href="https://other.example/x">Other</a>
  <img src="a.png"><img alt="no src">
</body></html>
"""


# ── make-http-request ───────────────────────────────────────────────


class TestMakeHttpRequest:
    @pytest.mark.asyncio
    async def test_get_with_params_and_headers(self) -> None:
        tool = MakeHttpRequestTool(transport=httpx.MockTransport(_echo))
        outcome = await _run(
            tool,
            {
                "url": "https://api.example/items",
                "params": '{"page": "2"}',
                "headers": '{"X-Test": "yes"}',
                "include_headers": True,
            },
        )
        result = json.loads(outcome.text)
        assert result["status"] == 200
        assert result["data"]["query"] == {"page": "2"}
        assert result["data"]["header"] == "yes"
        assert result["headers"]["x-served-by"] == "mock"

    @pytest.mark.asyncio
    async def test_json_body_and_basic_auth(self) -> None:
        tool = MakeHttpRequestTool(transport=httpx.MockTransport(_echo))
        outcome = await _run(
            tool,
            {"url": "https://api.example/x", "method": "POST", "data": '{"a": 1}', "auth": "user:pw"},
        )
        data = json.loads(outcome.text)["data"]
        assert data["method"] == "POST"
        assert json.loads(data["body"]) == {"a": 1}
        assert data["auth"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_non_json_body_sent_raw(self) -> None:
        tool = MakeHttpRequestTool(transport=httpx.MockTransport(_echo))
        outcome = await _run(tool, {"url": "https://api.example/x", "method": "PUT", "data": "plain text"})
        assert json.loads(outcome.text)["data"]["body"] == "plain text"

    @pytest.mark.asyncio
    async def test_output_raw(self) -> None:
        tool = MakeHttpRequestTool(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="hello")))
        outcome = await _run(tool, {"url": "https://api.example/", "output_raw": True})
        assert outcome.text == "hello"

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        tool = MakeHttpRequestTool(
            transport=httpx.MockTransport(lambda r: httpx.Response(404, json={"detail": "gone"}))
        )
        outcome = await _run(tool, {"url": "https://api.example/missing"})
        assert outcome.is_error
        details = json.loads(outcome.text.split("\n", 1)[1])
        assert details["status"] == 404
        assert details["data"] == {"detail": "gone"}

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        tool = MakeHttpRequestTool(transport=httpx.MockTransport(refuse))
        outcome = await _run(tool, {"url": "https://api.example/"})
        assert outcome.is_error
        assert "refused" in outcome.text

    @pytest.mark.asyncio
    async def test_bad_headers_json(self) -> None:
        tool = MakeHttpRequestTool(transport=httpx.MockTransport(_echo))
        outcome = await _run(tool, {"url": "https://api.example/", "headers": "{not json"})
        assert outcome.is_error
        assert outcome.text.startswith("Error parsing JSON input")


# ── scrape-web ──────────────────────────────────────────────────────


class TestScrapeWeb:
    def _args(self, **overrides: Any) -> dict[str, Any]:
        args: dict[str, Any] = {"extract_all_text": False, "extract_links": False}
        args.update(overrides)
        return args

    def test_selector_text(self) -> None:
        assert extract(PAGE, "https://site.example/", self._args(selector="p.note")) == ["first", "second"]

    def test_selector_attribute_skips_missing(self) -> None:
        result = extract(PAGE, "https://site.example/", self._args(selector="img", extract_attribute="src"))
        assert result == ["a.png"]

    def test_links_are_absolute(self) -> None:
        result = extract(PAGE, "https://site.example/docs/", self._args(extract_links=True))
        assert result == ["https://site.example/about", "https://other.example/x"]

    def test_all_text_collapses_whitespace(self) -> None:
        text = extract(PAGE, "https://site.example/", self._args(extract_all_text=True))
        assert text.startswith("Title here first second")

    @pytest.mark.asyncio
    async def test_tool_json_output(self) -> None:
        tool = ScrapeWebTool(transport=httpx.MockTransport(lambda r: httpx.Response(200, html=PAGE)))
        outcome = await _run(tool, {"url": "https://site.example/", "selector": "h1", "output_format": "json"})
        assert json.loads(outcome.text) == ["Title   here"]

    @pytest.mark.asyncio
    async def test_tool_requires_a_mode(self) -> None:
        tool = ScrapeWebTool(transport=httpx.MockTransport(lambda r: httpx.Response(200, html=PAGE)))
        outcome = await _run(tool, {"url": "https://site.example/"})
        assert outcome.is_error
        assert "selector" in outcome.text

    @pytest.mark.asyncio
    async def test_tool_http_error(self) -> None:
        tool = ScrapeWebTool(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        outcome = await _run(tool, {"url": "https://site.example/", "extract_links": True})
        assert outcome.is_error
        assert "Status: 500" in outcome.text


# ── ping-tool ───────────────────────────────────────────────────────

LINUX_PING = """PING example.com (93.184.216.34) 56(84) bytes of data.
64 bytes from 93.184.216.34: icmp_seq=1 ttl=56 time=11.2 ms
64 bytes from 93.184.216.34: icmp_seq=2 ttl=56 time=11.6 ms

--- example.com ping statistics ---
2 packets transmitted, 2 received, 0% packet loss, time 1001ms
rtt min/avg/max/mdev = 11.210/11.405/11.600/0.195 ms
"""

MAC_PING = """PING example.com (93.184.216.34): 56 data bytes

--- example.com ping statistics ---
3 packets transmitted, 2 packets received, 33.3% packet loss
round-trip min/avg/max/stddev = 10.1/12.2/14.3/1.7 ms
"""


class TestPing:
    def test_parse_linux_output(self) -> None:
        result = parse_ping_output("example.com", LINUX_PING)
        assert result["ip_address"] == "93.184.216.34"
        assert result["packets"] == {"transmitted": 2, "received": 2, "loss_percentage": 0}
        assert result["rtt"]["avg_ms"] == 11.405

    def test_parse_bsd_output(self) -> None:
        result = parse_ping_output("example.com", MAC_PING)
        assert result["packets"] == {"transmitted": 3, "received": 2, "loss_percentage": 33}
        assert result["rtt"]["mdev_ms"] == 1.7

    def test_parse_garbage(self) -> None:
        result = parse_ping_output("x", "nothing useful")
        assert result["packets"]["transmitted"] is None
        assert "rtt" not in result

    def test_command_uses_count_and_timeout(self) -> None:
        cmd = ping_command("host", 3, 2)
        assert cmd[0] == "ping"
        assert "3" in cmd and cmd[-1] == "host"

    @pytest.mark.asyncio
    async def test_option_like_target_rejected(self) -> None:
        outcome = await _run(PingTool(), {"target": "-f"})
        assert outcome.is_error

    @pytest.mark.asyncio
    async def test_count_out_of_range_rejected_by_schema(self) -> None:
        with pytest.raises(ArgumentValidationError):
            await _run(PingTool(), {"target": "localhost", "count": 0})


# ── host inspection ─────────────────────────────────────────────────


class TestHostInspection:
    def test_system_info_keys(self) -> None:
        info = system_info()
        assert set(info) == {
            "platform", "osType", "osRelease", "architecture", "hostname",
            "totalMemoryMB", "freeMemoryMB", "cpuCount", "cpuModel", "uptimeSeconds",
        }
        assert info["totalMemoryMB"] >= info["freeMemoryMB"] >= 0

    @pytest.mark.asyncio
    async def test_system_info_tool_ignores_arguments(self) -> None:
        outcome = await _run(GetSystemInfoTool(), {"unexpected": 1})
        assert json.loads(outcome.text)["cpuCount"] >= 1

    @pytest.mark.asyncio
    async def test_process_table_lists_self(self) -> None:
        outcome = await _run(ListProcessesTool(), {})
        lines = outcome.text.splitlines()
        assert lines[0].split() == ["PID", "PPID", "COMMAND"]
        assert any(line.split()[0] == str(os.getpid()) for line in lines[1:])
