"""Merge several author records into one logical author."""

import logging

from pydantic import Field

from selfcite.core.errors import InputError
from selfcite.sources.models import AuthorRecord

logger = logging.getLogger(__name__)


class LogicalAuthor(AuthorRecord):
    """One person, possibly backed by several source identifiers.

    `author_id` is the comma-joined identifier sequence. `h_index` of a
    merged author is a placeholder until recomputed from the merged
    publications, since H-index does not add up across records.
    """

    author_ids: list[str] = Field(default_factory=list)
    name_variants: list[str] = Field(
        default_factory=list,
        description="Names of merged records that differ from the display name",
    )

    @property
    def is_merged(self) -> bool:
        return len(self.author_ids) > 1


def merge_authors(records: list[AuthorRecord]) -> LogicalAuthor:
    """Combine records in input order into a LogicalAuthor.

    A single record passes through with its own id and counts.
    """
    if not records:
        raise InputError("At least one author record is required")

    first = records[0]
    if len(records) == 1:
        return LogicalAuthor(**first.model_dump(), author_ids=[first.author_id])

    affiliations: list[str] = []
    for rec in records:
        for aff in rec.affiliations:
            if aff not in affiliations:
                affiliations.append(aff)

    display_key = _name_key(first.name)
    name_variants: list[str] = []
    seen_keys = {display_key}
    for rec in records[1:]:
        key = _name_key(rec.name)
        if key and key not in seen_keys:
            seen_keys.add(key)
            name_variants.append(rec.name)

    if name_variants:
        logger.warning(
            "Merged author names differ: %s vs %s",
            first.name,
            ", ".join(name_variants),
        )

    author_ids = [rec.author_id for rec in records]
    return LogicalAuthor(
        author_id=",".join(author_ids),
        name=first.name,
        url=_first_non_empty(rec.url for rec in records),
        affiliations=affiliations,
        homepage=_first_non_empty(rec.homepage for rec in records),
        paper_count=sum(rec.paper_count or 0 for rec in records),
        citation_count=sum(rec.citation_count or 0 for rec in records),
        h_index=0,
        author_ids=author_ids,
        name_variants=name_variants,
    )


# ── Helpers ──────────────────────────────────────────────────────────


def _name_key(name: str | None) -> str:
    return (name or "").strip().lower()


def _first_non_empty(values):
    for v in values:
        if v:
            return v
    return None
