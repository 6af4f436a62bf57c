"""Data models for Semantic Scholar authors, publications and citing works.

Field aliases follow the API's camelCase JSON so payloads validate directly;
Python code uses the snake_case names.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _none_to_zero(v: Any) -> Any:
    return 0 if v is None else v


def _clean_list(v: Any) -> Any:
    """None becomes an empty list and null entries are dropped.

    Anything that is not a list is returned untouched so validation rejects it.
    """
    if v is None:
        return []
    if isinstance(v, list):
        return [item for item in v if item is not None]
    return v


class AuthorStub(BaseModel):
    """Author entry embedded in a publication's author list."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    author_id: Optional[str] = Field(default=None, alias="authorId")
    name: Optional[str] = None


class AuthorRecord(BaseModel):
    """An author profile as returned by GET /author/{id}."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    author_id: str = Field(alias="authorId")
    name: str = ""
    url: Optional[str] = None
    affiliations: list[str] = Field(default_factory=list)
    homepage: Optional[str] = None
    paper_count: Optional[int] = Field(default=None, alias="paperCount")
    citation_count: Optional[int] = Field(default=None, alias="citationCount")
    h_index: Optional[int] = Field(default=None, alias="hIndex")

    @field_validator("name", mode="before")
    @classmethod
    def _name_not_null(cls, v):
        return v or ""

    @field_validator("affiliations", mode="before")
    @classmethod
    def _affiliations(cls, v):
        return _clean_list(v)


class CitingWork(BaseModel):
    """A work that cites a publication (forward citation).

    `authors` is required: an entry without a well-formed author list
    cannot be classified and fails validation.
    """

    model_config = ConfigDict(populate_by_name=True)

    paper_id: str = Field(alias="paperId", min_length=1)
    title: Optional[str] = None
    year: Optional[int] = None
    authors: list[AuthorStub]
    venue: Optional[str] = None
    url: Optional[str] = None

    @field_validator("authors", mode="before")
    @classmethod
    def _authors(cls, v):
        if v is None:
            return v
        return _clean_list(v)


class Publication(BaseModel):
    """A publication of the analyzed author, optionally enriched with citations."""

    model_config = ConfigDict(populate_by_name=True)

    paper_id: str = Field(alias="paperId", min_length=1)
    title: str = ""
    year: Optional[int] = None
    authors: list[AuthorStub] = Field(default_factory=list)
    venue: Optional[str] = None
    citation_count: int = Field(default=0, ge=0, alias="citationCount")
    reference_count: int = Field(default=0, ge=0, alias="referenceCount")
    fields_of_study: list[str] = Field(default_factory=list, alias="fieldsOfStudy")
    url: Optional[str] = None
    abstract: Optional[str] = None

    # Set by the citation analysis step
    citing_works: Optional[list[CitingWork]] = None
    method1_self_citation_count: Optional[int] = None
    method2_self_citation_count: Optional[int] = None

    @field_validator("title", mode="before")
    @classmethod
    def _title_not_null(cls, v):
        return v or ""

    @field_validator("citation_count", "reference_count", mode="before")
    @classmethod
    def _counts(cls, v):
        return _none_to_zero(v)

    @field_validator("authors", "fields_of_study", mode="before")
    @classmethod
    def _lists(cls, v):
        return _clean_list(v)

    def self_citation_count(self, method: int) -> int:
        """Self-citation count under method 1 or 2 (0 before enrichment)."""
        if method == 1:
            return self.method1_self_citation_count or 0
        if method == 2:
            return self.method2_self_citation_count or 0
        raise ValueError(f"Unknown self-citation method: {method}")
