"""
Title/description matching used to turn a fuzzy query into todo records.

Matching is deliberately crude: plain substring and whitespace-token checks,
no relevance scoring. The module-level functions are pure and work on a store
snapshot; SearchResolver binds them to a Repository.

Only the exact-title tier is case-sensitive. Every substring or token check
compares lowercased text. A blank query matches nothing.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from .models import CategoryEntity, TodoEntity
from .repositories import Repository


def tokenize(query: str) -> List[str]:
    """Lowercased whitespace-separated words of `query`."""
    return query.lower().split()


def _dedupe(todos: Iterable[TodoEntity]) -> List[TodoEntity]:
    seen: Dict[str, TodoEntity] = {}
    for todo in todos:
        seen.setdefault(todo["id"], todo)
    return list(seen.values())


# PUBLIC_INTERFACE
def match_title(query: str, todos: Sequence[TodoEntity]) -> List[TodoEntity]:
    """
    Three-tier title lookup, each tier short-circuiting on any result:

    1. title equals the query exactly (case-sensitive)
    2. title contains the whole query
    3. title contains any single word of the query

    Returns matches in store order; an empty list means no match.
    """
    if not query.strip():
        return []

    exact = [t for t in todos if t["title"] == query]
    if exact:
        return exact

    phrase = query.strip().lower()
    contained = [t for t in todos if phrase in t["title"].lower()]
    if contained:
        return contained

    words = tokenize(query)
    return [t for t in todos if any(w in t["title"].lower() for w in words)]


# PUBLIC_INTERFACE
def match_description(query: str, todos: Sequence[TodoEntity]) -> List[TodoEntity]:
    """
    Phrase containment in the description; if nothing matches, any word of the
    query in either title or description.
    """
    phrase = query.strip().lower()
    if not phrase:
        return []

    hits = [t for t in todos if phrase in (t["description"] or "").lower()]
    if hits:
        return hits

    words = tokenize(query)
    return [
        t
        for t in todos
        if any(w in t["title"].lower() or w in (t["description"] or "").lower() for w in words)
    ]


# PUBLIC_INTERFACE
def match_smart(
    query: str,
    todos: Sequence[TodoEntity],
    categories: Sequence[CategoryEntity] = (),
) -> List[TodoEntity]:
    """
    Broad search: a todo matches when the phrase or any single word occurs in
    its title or description, or when the phrase occurs in its category's
    display name. Each todo is returned once, ordered by title; equal titles
    keep store order.
    """
    phrase = query.strip().lower()
    if not phrase:
        return []
    words = tokenize(query)
    category_names = {c["id"]: c["name"].lower() for c in categories}

    def matches(todo: TodoEntity) -> bool:
        title = todo["title"].lower()
        description = (todo["description"] or "").lower()
        if phrase in title or phrase in description:
            return True
        if any(w in title or w in description for w in words):
            return True
        return phrase in category_names.get(todo["category"], "")

    hits = _dedupe(t for t in todos if matches(t))
    return sorted(hits, key=lambda t: t["title"])


@dataclass(frozen=True)
class NotFound:
    query: str


@dataclass(frozen=True)
class Ambiguous:
    query: str
    candidates: Tuple[TodoEntity, ...]


@dataclass(frozen=True)
class Resolved:
    todo: TodoEntity


Resolution = Union[NotFound, Ambiguous, Resolved]


# PUBLIC_INTERFACE
def classify(query: str, matches: Sequence[TodoEntity]) -> Resolution:
    """Branch a match list on its cardinality."""
    if not matches:
        return NotFound(query)
    if len(matches) > 1:
        return Ambiguous(query, tuple(matches))
    return Resolved(matches[0])


# PUBLIC_INTERFACE
class SearchResolver:
    """Runs the matching functions against a snapshot of a Repository."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def resolve_by_title(self, query: str) -> List[TodoEntity]:
        return match_title(query, self._repo.list_todos())

    def resolve_by_description(self, query: str) -> List[TodoEntity]:
        return match_description(query, self._repo.list_todos())

    def smart_search(self, query: str) -> List[TodoEntity]:
        return match_smart(query, self._repo.list_todos(), self._repo.list_categories())

    def resolve_target(self, query: str) -> Resolution:
        """Smart-search `query` and classify the result as NotFound, Ambiguous or Resolved."""
        return classify(query, self.smart_search(query))
