"""Web search tool backed by the Tavily API, with per-run duplicate detection."""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, Field

from ..settings import TAVILY_API_KEY, TAVILY_BASE_URL
from .definitions import ToolResult

logger = logging.getLogger(__name__)

SUMMARY_CHARS = 150


class SearchHit(BaseModel):
    """A single web search result."""

    title: str = ""
    url: str = ""
    content: str = ""
    score: float = 0.0


class SearchResponse(BaseModel):
    """Results of one web search."""

    results: list[SearchHit] = Field(default_factory=list)
    answer: str | None = None


@runtime_checkable
class SearchClient(Protocol):
    """Protocol for web search backends."""

    async def search(self, query: str) -> SearchResponse:
        """Run a search and return its results. May raise on transport errors."""
        ...


def normalize_query(query: str) -> str:
    """Lowercase and collapse whitespace for similarity comparison."""
    return " ".join(query.lower().split())


def query_similarity(query1: str, query2: str) -> float:
    """Jaccard similarity of the word sets of two normalized queries (0.0 to 1.0)."""
    words1 = set(query1.split(" "))
    words2 = set(query2.split(" "))
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


class SearchHistory:
    """
    Searches performed during one run.

    Created fresh for every run and passed by reference to the search tool,
    so duplicate detection never leaks between runs.
    """

    def __init__(self, similarity_threshold: float = 0.8):
        self.similarity_threshold = similarity_threshold
        self._queries: list[str] = []

    def __len__(self) -> int:
        return len(self._queries)

    def __iter__(self):
        return iter(self._queries)

    def find_similar(self, query: str) -> str | None:
        """Return a previously recorded query that is too similar, if any."""
        normalized = normalize_query(query)
        for past in self._queries:
            if query_similarity(normalized, past) > self.similarity_threshold:
                return past
        return None

    def record(self, query: str) -> None:
        self._queries.append(normalize_query(query))


class TavilySearchClient(SearchClient):
    """
    Async client for the Tavily search API.

    Usage:
        async with TavilySearchClient() as client:
            response = await client.search("python asyncio timeout")
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        max_results: int = 5,
        timeout: float = 30.0,
    ):
        self.api_key = api_key or TAVILY_API_KEY
        self.base_url = base_url or TAVILY_BASE_URL
        self.max_results = max_results
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

        if not self.api_key:
            logger.warning("No Tavily API key provided - searches will fail")

    async def __aenter__(self) -> TavilySearchClient:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    async def search(self, query: str) -> SearchResponse:
        logger.info(f"Tavily search: '{query}'")
        response = await self.client.post(
            "/search",
            json={
                "query": query,
                "search_depth": "advanced",
                "max_results": self.max_results,
                "include_answer": True,
            },
        )
        response.raise_for_status()
        data = response.json()
        logger.debug(f"Tavily returned {len(data.get('results') or [])} results")
        return SearchResponse.model_validate(
            {"results": data.get("results") or [], "answer": data.get("answer")}
        )


class MockSearchClient(SearchClient):
    """Mock search backend that returns canned results for any query."""

    def __init__(self, results: dict[str, SearchResponse] | None = None):
        self.results = results or {}
        self.queries: list[str] = []

    async def search(self, query: str) -> SearchResponse:
        self.queries.append(query)
        if query in self.results:
            return self.results[query]
        return SearchResponse(
            results=[
                SearchHit(
                    title=f"Result for {query}",
                    url=f"https://example.com/search?q={query.replace(' ', '+')}",
                    content=f"Mock content describing {query}.",
                    score=0.9,
                )
            ],
        )

    async def __aenter__(self) -> MockSearchClient:
        return self

    async def __aexit__(self, *args) -> None:
        pass


def _relevance_band(score: float) -> str:
    if score > 0.8:
        return "High"
    if score > 0.5:
        return "Medium"
    return "Low"


def format_search_results(query: str, response: SearchResponse, top_results: int = 3) -> str:
    """Render search results as the text observation handed back to the model."""
    top = sorted(response.results, key=lambda r: r.score, reverse=True)[:top_results]

    lines = [
        f'Search: "{query}"',
        f"Results: {len(response.results)} found, showing top {len(top)}",
        "",
    ]
    if response.answer:
        lines.extend([f"Quick Answer: {response.answer}", ""])

    lines.append("--- Top Results ---")
    for i, hit in enumerate(top, 1):
        summary = hit.content[:SUMMARY_CHARS]
        if len(hit.content) > SUMMARY_CHARS:
            summary += "..."
        lines.extend([
            "",
            f"[{i}] {hit.title}",
            f"    Source: {hit.url}",
            f"    Relevance: {_relevance_band(hit.score)} ({hit.score * 100:.0f}%)",
            f"    Summary: {summary}",
        ])

    lines.extend([
        "",
        "--- Analysis Guide ---",
        "After reading these results:",
        "1. State whether the results answer your question [Relevant/Partial/Irrelevant]",
        "2. If [Partial], identify what specific info is missing",
        "3. If [Irrelevant], explain why and plan a new search strategy",
    ])
    return "\n".join(lines)


async def web_search(
    client: SearchClient,
    query: str,
    history: SearchHistory | None = None,
    top_results: int = 3,
) -> ToolResult:
    """
    Run the web_search tool.

    Args:
        client: Search backend
        query: Search query
        history: Searches already performed in this run
        top_results: Number of results to include in the observation

    Returns:
        ToolResult; transport and API failures come back with is_error=True
    """
    if history is not None:
        similar = history.find_similar(query)
        if similar is not None:
            logger.info(f"Skipping near-duplicate search '{query}' (matches '{similar}')")
            return ToolResult(
                content=(
                    f'Note: Similar search already performed ("{similar}"). '
                    f'Current query: "{query}". Consider refining your search '
                    "strategy or using existing results."
                ),
            )
        history.record(query)

    try:
        response = await client.search(query)
    except httpx.HTTPStatusError as e:
        logger.warning(f"Search API returned {e.response.status_code} for '{query}'")
        return ToolResult(
            content=f"Error: Search API returned {e.response.status_code}",
            is_error=True,
        )
    except Exception as e:
        logger.warning(f"Search failed for '{query}': {e}")
        return ToolResult(content=f"Error performing search: {e}", is_error=True)

    if not response.results:
        return ToolResult(
            content=(
                "No results found. Try: (1) Using different keywords "
                "(2) Removing specific terms (3) Searching in English"
            ),
        )

    return ToolResult(content=format_search_results(query, response, top_results))
