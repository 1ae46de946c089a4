"""Web search through a rendered Google results page."""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import quote_plus

from bs4 import BeautifulSoup

from .config import RenderOptions
from .errors import RenderError, SearchUnavailable
from .models import RelatedQuestion, SearchResponse, SearchResult

logger = logging.getLogger("product_distill")

SEARCH_URL = "https://www.google.com/search?q={query}"


def _text(element) -> str:
    return element.get_text(" ", strip=True) if element is not None else ""


def parse_search_results(html: str) -> List[SearchResult]:
    """Organic results that carry a title, a link and a snippet."""
    soup = BeautifulSoup(html, "html.parser")
    results: List[SearchResult] = []
    for block in soup.select("#search .g"):
        title_el = block.find("h3")
        link_el = block.find("a", href=True)
        snippet_el = block.select_one(".VwiC3b")
        if title_el is None or link_el is None or snippet_el is None:
            continue
        url = link_el["href"].strip()
        if not url:
            continue
        results.append(
            SearchResult(title=_text(title_el), url=url, snippet=_text(snippet_el))
        )
    return results


def parse_related_questions(html: str) -> List[RelatedQuestion]:
    """The "People also ask" pairs shown alongside the results."""
    soup = BeautifulSoup(html, "html.parser")
    questions: List[RelatedQuestion] = []
    for pair in soup.select(".related-question-pair"):
        question_el = pair.select_one(".related-question-pair__question")
        answer_el = pair.select_one(".related-question-pair__answer")
        if question_el is None or answer_el is None:
            continue
        questions.append(
            RelatedQuestion(question=_text(question_el), answer=_text(answer_el))
        )
    return questions


class GoogleSearchProvider:
    """Search provider backed by the same renderer used for product pages."""

    def __init__(self, renderer, options: Optional[RenderOptions] = None) -> None:
        self.renderer = renderer
        self.options = options

    async def search(self, query: str) -> SearchResponse:
        url = SEARCH_URL.format(query=quote_plus(query))
        try:
            page = await self.renderer.render(url, self.options)
        except RenderError as exc:
            raise SearchUnavailable(f"Search for {query!r} failed: {exc}") from exc

        response = SearchResponse(
            results=parse_search_results(page.html),
            related_questions=parse_related_questions(page.html),
        )
        logger.info(
            "Search %r returned %d result(s), %d related question(s)",
            query,
            len(response.results),
            len(response.related_questions),
        )
        return response
