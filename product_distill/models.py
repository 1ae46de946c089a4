"""Data models used throughout the distillation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class RenderedPage:
    """Serialized DOM captured from a rendered URL."""

    html: str
    final_url: str


@dataclass
class EvidenceBlock:
    """Context text captured around a confirmed proximity match."""

    text: str
    origin_token: str
    element: Any = field(default=None, repr=False, compare=False)


@dataclass
class ImageCandidate:
    """Inline image that survived filtering, scored against the target name."""

    url: str
    alt_text: str
    width: int
    height: int
    similarity: float = 0.0


@dataclass
class SourceResult:
    """Per-URL outcome of the fan-out."""

    url: str
    cleaned_text: str
    image: Optional[ImageCandidate] = None
    title: str = ""
    blocks: List[EvidenceBlock] = field(default_factory=list)


@dataclass
class AggregatedEvidence:
    """Prompt-ready evidence merged from one or more sources."""

    combined_text: str = ""
    images: List[ImageCandidate] = field(default_factory=list)
    selected_image: Optional[ImageCandidate] = None
    blocks: List[EvidenceBlock] = field(default_factory=list)
    sources: List[SourceResult] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.combined_text.strip()


@dataclass
class SearchResult:
    title: str
    url: str
    snippet: str


@dataclass
class RelatedQuestion:
    question: str
    answer: str


@dataclass
class SearchResponse:
    results: List[SearchResult] = field(default_factory=list)
    related_questions: List[RelatedQuestion] = field(default_factory=list)
