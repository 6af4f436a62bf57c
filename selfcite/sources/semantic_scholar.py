"""Semantic Scholar Graph API client: authors, publication lists, citing works."""

import logging
from typing import Optional

import requests
from pydantic import ValidationError

from selfcite.core.config import AnalysisConfig
from selfcite.core.errors import NotFoundError, RetrievalError
from selfcite.sources.fetcher import RateLimitedFetcher
from selfcite.sources.models import AuthorRecord, CitingWork, Publication

logger = logging.getLogger(__name__)

AUTHOR_FIELDS = "name,url,affiliations,homepage,paperCount,citationCount,hIndex"
PAPER_FIELDS = (
    "paperId,title,year,authors,venue,citationCount,referenceCount,"
    "fieldsOfStudy,url,abstract"
)
CITATION_FIELDS = "paperId,title,year,authors,venue,url"


class SemanticScholarClient:
    """Typed access to the three Graph API endpoints the analysis needs."""

    def __init__(
        self,
        fetcher: RateLimitedFetcher,
        base_url: str = "https://api.semanticscholar.org/graph/v1",
        page_size: int = 100,
        citation_limit: int = 1000,
    ):
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.citation_limit = citation_limit

    @classmethod
    def from_config(cls, config: AnalysisConfig) -> "SemanticScholarClient":
        api_key = config.api.api_key.get_secret_value() if config.api.api_key else None
        fetcher = RateLimitedFetcher(
            api_key=api_key,
            timeout=config.api.timeout_s,
            max_retries=config.api.max_retries,
            initial_delay=config.api.initial_delay_s,
        )
        return cls(
            fetcher,
            base_url=config.api.base_url,
            page_size=config.pipeline.page_size,
            citation_limit=config.pipeline.citation_limit,
        )

    # ── Authors ──────────────────────────────────────────────────────

    def get_author(self, author_id: str) -> AuthorRecord:
        """Fetch one author profile.

        Raises NotFoundError on 404 and RetrievalError on any other failure.
        """
        url = f"{self.base_url}/author/{author_id}"
        response = self._fetch_or_raise(url, {"fields": AUTHOR_FIELDS}, author_id)

        if response.status_code == 404:
            raise NotFoundError(
                f"Author not found: {author_id}",
                status_code=404,
                author_id=author_id,
                url=url,
            )
        if not response.ok:
            raise RetrievalError(
                f"Failed to fetch author {author_id} (HTTP {response.status_code})",
                status_code=response.status_code,
                author_id=author_id,
                url=url,
            )

        try:
            return AuthorRecord.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RetrievalError(
                f"Malformed author record for {author_id}: {exc}",
                status_code=response.status_code,
                author_id=author_id,
                url=url,
            ) from exc

    # ── Publications ─────────────────────────────────────────────────

    def get_author_publications(self, author_id: str) -> list[Publication]:
        """Fetch every publication of one author, page by page.

        A page shorter than the page size is the last one. Any failed page
        raises RetrievalError; nothing is returned partially.
        """
        url = f"{self.base_url}/author/{author_id}/papers"
        publications: list[Publication] = []
        offset = 0

        while True:
            params = {"fields": PAPER_FIELDS, "limit": self.page_size, "offset": offset}
            response = self._fetch_or_raise(url, params, author_id)
            if not response.ok:
                raise RetrievalError(
                    f"Failed to fetch publications for author {author_id} "
                    f"(HTTP {response.status_code}, offset {offset})",
                    status_code=response.status_code,
                    author_id=author_id,
                    url=url,
                )

            try:
                page = _data_items(response)
            except ValueError as exc:
                raise RetrievalError(
                    f"Malformed publication page for author {author_id} "
                    f"(offset {offset}): {exc}",
                    status_code=response.status_code,
                    author_id=author_id,
                    url=url,
                ) from exc
            for item in page:
                pub = _parse_publication(item)
                if pub:
                    publications.append(pub)

            logger.debug(
                "Author %s: page at offset %d returned %d items", author_id, offset, len(page)
            )
            if len(page) < self.page_size:
                break
            offset += self.page_size

        logger.info("Author %s: %d publications", author_id, len(publications))
        return publications

    def get_merged_publications(self, author_ids: list[str]) -> list[Publication]:
        """Publications of several authors, deduplicated by paper id.

        Authors are fetched in order; the first occurrence of a paper wins
        and the order of first appearance is kept.
        """
        seen: set[str] = set()
        merged: list[Publication] = []
        for author_id in author_ids:
            for pub in self.get_author_publications(author_id):
                if pub.paper_id in seen:
                    continue
                seen.add(pub.paper_id)
                merged.append(pub)

        if len(author_ids) > 1:
            logger.info(
                "Merged publications of %d authors: %d unique", len(author_ids), len(merged)
            )
        return merged

    # ── Citations ────────────────────────────────────────────────────

    def get_citing_works(self, paper_id: str) -> list[CitingWork]:
        """Fetch the works citing a publication, best effort.

        A 404 means the paper is not in the citation graph: no citations.
        Other failures also yield no citations but are logged, since they
        under-count silently otherwise.
        """
        url = f"{self.base_url}/paper/{paper_id}/citations"
        params = {"fields": CITATION_FIELDS, "limit": self.citation_limit}
        try:
            response = self.fetcher.fetch(url, params=params)
        except requests.RequestException as exc:
            logger.warning(
                "Citations unavailable for paper %s (%s), counting none",
                paper_id,
                type(exc).__name__,
                extra={"event": "citations_unavailable", "paper_id": paper_id, "status_code": None},
            )
            return []

        if response.status_code == 404:
            logger.info(
                "Paper %s not found in citation graph",
                paper_id,
                extra={"event": "citations_not_found", "paper_id": paper_id},
            )
            return []
        if not response.ok:
            logger.warning(
                "Citations unavailable for paper %s (HTTP %d), counting none",
                paper_id,
                response.status_code,
                extra={
                    "event": "citations_unavailable",
                    "paper_id": paper_id,
                    "status_code": response.status_code,
                },
            )
            return []

        try:
            items = _data_items(response)
        except ValueError as exc:
            logger.warning(
                "Citations unavailable for paper %s (malformed body: %s), counting none",
                paper_id,
                exc,
                extra={
                    "event": "citations_unavailable",
                    "paper_id": paper_id,
                    "status_code": response.status_code,
                },
            )
            return []
        citing = parse_citing_works(items, paper_id)
        logger.debug(
            "Paper %s: %d citing works (%d valid)", paper_id, len(items), len(citing)
        )
        return citing

    def _fetch_or_raise(self, url: str, params: dict, author_id: str):
        """Fetch, turning transport errors into RetrievalError for `author_id`."""
        try:
            return self.fetcher.fetch(url, params=params)
        except requests.RequestException as exc:
            raise RetrievalError(
                f"Request for author {author_id} failed: {exc}",
                author_id=author_id,
                url=url,
            ) from exc


# ── Payload Parsing ──────────────────────────────────────────────────


def _data_items(response: requests.Response) -> list:
    """The `data` list of a paged response body.

    Raises ValueError when the body is not JSON, not an object, or its
    `data` is not a list. A missing or null `data` is an empty page.
    """
    payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    items = payload.get("data") or []
    if not isinstance(items, list):
        raise ValueError(f"expected a list under 'data', got {type(items).__name__}")
    return items


def parse_citing_works(items: list, paper_id: Optional[str] = None) -> list[CitingWork]:
    """Convert raw citation items into CitingWork records.

    Items look like {"citingPaper": {...}}; bare paper dicts are accepted
    too. Entries without an id or a usable author list are dropped.
    """
    citing: list[CitingWork] = []
    for item in items:
        raw = item.get("citingPaper", item) if isinstance(item, dict) else None
        if not isinstance(raw, dict):
            _log_filtered(paper_id, "not an object")
            continue
        try:
            citing.append(CitingWork.model_validate(raw))
        except ValidationError as exc:
            _log_filtered(paper_id, f"{exc.error_count()} validation error(s)")
    return citing


def _parse_publication(item) -> Publication | None:
    """Convert a raw paper dict into a Publication, or None if unusable."""
    if not isinstance(item, dict):
        return None
    try:
        return Publication.model_validate(item)
    except ValidationError as exc:
        logger.debug(
            "Skipping malformed publication %s: %s",
            item.get("paperId"),
            exc.error_count(),
            extra={"event": "record_filtered", "paper_id": item.get("paperId")},
        )
        return None


def _log_filtered(paper_id: Optional[str], reason: str) -> None:
    logger.debug(
        "Dropped citing work of %s: %s",
        paper_id,
        reason,
        extra={"event": "record_filtered", "paper_id": paper_id},
    )
