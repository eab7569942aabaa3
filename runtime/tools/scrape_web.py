"""Built-in scrape-web tool: fetch a page with httpx, query it with BeautifulSoup."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BooleanField, EnumField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer

_WHITESPACE_RUN = re.compile(r"\s\s+")


class ScrapeError(Exception):
    pass


def extract(html: str, base_url: str, args: dict[str, Any]) -> str | list[str]:
    """Apply the extraction options to *html*.

    Precedence: all text, then links, then selector.
    """
    soup = BeautifulSoup(html, "html.parser")

    if args["extract_all_text"]:
        body = soup.body or soup
        return _WHITESPACE_RUN.sub(" ", body.get_text()).strip()

    if args["extract_links"]:
        return [urljoin(base_url, a["href"]) for a in soup.select("a[href]") if a["href"]]

    selector = args.get("selector")
    if not selector:
        raise ScrapeError(
            "Error: You must either provide a 'selector', or set 'extract_all_text' or 'extract_links' to true."
        )
    elements = soup.select(selector)
    attribute = args.get("extract_attribute")
    if attribute:
        return [str(el[attribute]) for el in elements if el.get(attribute)]
    return [el.get_text().strip() for el in elements]


class ScrapeWebTool(BaseTool):
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="scrape-web",
            title="Scrape Web",
            description="Scrapes a web page: CSS-selected text or attributes, all page text, or all links.",
            schema={
                "url": StringField(description="The URL of the page to scrape."),
                "selector": StringField(required=False, description="CSS selector for the target elements."),
                "extract_attribute": StringField(required=False, description="Attribute to extract, e.g. 'href'."),
                "extract_all_text": BooleanField(default=False, description="Return all text of the page."),
                "extract_links": BooleanField(default=False, description="Return all absolute links."),
                "output_format": EnumField(members=["text", "json"], default="text"),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        try:
            async with httpx.AsyncClient(follow_redirects=True, timeout=30.0, transport=self._transport) as client:
                response = await client.get(args["url"])
                response.raise_for_status()
            results = extract(response.text, str(response.url), args)
        except ScrapeError as exc:
            return error_outcome(str(exc))
        except httpx.HTTPStatusError as exc:
            return error_outcome(f"Error scraping web: {exc}\nStatus: {exc.response.status_code}")
        except httpx.HTTPError as exc:
            return error_outcome(f"Error scraping web: {exc}")

        if args["output_format"] == "json":
            return text_outcome(json.dumps(results, indent=2))
        return text_outcome(results if isinstance(results, str) else "\n".join(results))


def register(server: ToolServer) -> None:
    server.register(ScrapeWebTool().definition())
