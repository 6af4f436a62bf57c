"""Self-citation detection rules.

Method 1 (target-author presence) needs a designated author id: the citing
work counts when that author also wrote it. Method 2 (author overlap) needs
no id: the citing work counts when any author name appears on both works,
which flags more citations than method 1.
"""

from typing import NamedTuple, Optional, Sequence

from selfcite.sources.models import AuthorStub, CitingWork, Publication


class SelfCitationVerdict(NamedTuple):
    method1: bool
    method2: bool


def normalize_name(name: Optional[str]) -> str:
    """Lowercase and trim; None becomes an empty string."""
    return (name or "").strip().lower()


# ── Method 1 ─────────────────────────────────────────────────────────


def is_method1_self_citation(
    publication: Publication,
    citing: CitingWork,
    target_author_id: str,
) -> bool:
    """True if the target author of `publication` also authored `citing`.

    A citing author with an id matches only on that id. The name is
    compared only when the id is missing.
    """
    if not target_author_id or not publication.authors or not citing.authors:
        return False

    target = _find_author(publication.authors, target_author_id)
    if target is None:
        return False
    target_name = normalize_name(target.name)

    for author in citing.authors:
        if author.author_id:
            if author.author_id == target_author_id:
                return True
        elif target_name and normalize_name(author.name) == target_name:
            return True
    return False


def is_method1_for_any(
    publication: Publication,
    citing: CitingWork,
    author_ids: Sequence[str],
) -> bool:
    """Method 1 over the identifiers of a merged author, OR-combined."""
    return any(
        is_method1_self_citation(publication, citing, author_id)
        for author_id in author_ids
    )


# ── Method 2 ─────────────────────────────────────────────────────────


def is_method2_self_citation(publication: Publication, citing: CitingWork) -> bool:
    """True if any author name of `publication` also appears on `citing`."""
    if not publication.authors or not citing.authors:
        return False

    cited_names = {normalize_name(a.name) for a in publication.authors} - {""}
    if not cited_names:
        return False
    return any(normalize_name(a.name) in cited_names for a in citing.authors)


# ── Combined ─────────────────────────────────────────────────────────


def classify(
    publication: Publication,
    citing: CitingWork,
    author_ids: Sequence[str] = (),
) -> SelfCitationVerdict:
    """Evaluate both methods; method 1 is False when no author ids are given."""
    return SelfCitationVerdict(
        method1=is_method1_for_any(publication, citing, author_ids),
        method2=is_method2_self_citation(publication, citing),
    )


def count_self_citations(
    publication: Publication,
    citing_works: Sequence[CitingWork],
    author_ids: Sequence[str] = (),
) -> tuple[int, int]:
    """Number of method 1 and method 2 self-citations among `citing_works`."""
    method1 = method2 = 0
    for citing in citing_works:
        verdict = classify(publication, citing, author_ids)
        method1 += verdict.method1
        method2 += verdict.method2
    return method1, method2


def _find_author(authors: Sequence[AuthorStub], author_id: str) -> AuthorStub | None:
    for author in authors:
        if author.author_id == author_id:
            return author
    return None
