"""Global search over mapped databases, plus a persisted query history."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import structlog

from ddrscope.config import (
    SEARCH_HISTORY_KEY,
    SEARCH_HISTORY_MAX_ITEMS,
    SEARCH_MIN_QUERY_LENGTH,
)
from ddrscope.models import Database

logger = structlog.get_logger(__name__)


@dataclass
class SearchHit:
    kind: str
    name: str
    db: str
    table: str | None = None
    matched_in: str = "name"  # name, calc or body

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind,
            "name": self.name,
            "db": self.db,
            "matchedIn": self.matched_in,
        }
        if self.table is not None:
            d["table"] = self.table
        return d


@dataclass
class SearchResults:
    query: str = ""
    tables: list[SearchHit] = field(default_factory=list)
    fields: list[SearchHit] = field(default_factory=list)
    scripts: list[SearchHit] = field(default_factory=list)
    layouts: list[SearchHit] = field(default_factory=list)
    tos: list[SearchHit] = field(default_factory=list)
    value_lists: list[SearchHit] = field(default_factory=list)
    custom_functions: list[SearchHit] = field(default_factory=list)

    def groups(self) -> dict[str, list[SearchHit]]:
        return {
            "tables": self.tables,
            "fields": self.fields,
            "scripts": self.scripts,
            "layouts": self.layouts,
            "tos": self.tos,
            "valueLists": self.value_lists,
            "customFunctions": self.custom_functions,
        }

    @property
    def total(self) -> int:
        return sum(len(hits) for hits in self.groups().values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "total": self.total,
            **{
                key: [h.to_dict() for h in hits]
                for key, hits in self.groups().items()
            },
        }


def normalize_query(query: str) -> str | None:
    """Trimmed, lowercased query, or None when too short to search."""
    q = (query or "").strip().lower()
    if len(q) < SEARCH_MIN_QUERY_LENGTH:
        return None
    return q


def _contains(haystack: str | None, needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def search_corpus(databases: list[Database], query: str) -> SearchResults:
    """Case-insensitive substring search across every named entity.

    Fields match on name or calculation text, custom functions on name
    or body. Queries shorter than two characters return no hits.
    """
    results = SearchResults(query=(query or "").strip())
    q = normalize_query(query)
    if q is None:
        return results

    for db in databases:
        for table in db.tables:
            if _contains(table.name, q):
                results.tables.append(SearchHit("table", table.name, db.name))
            for f in table.fields:
                if _contains(f.name, q):
                    matched = "name"
                elif _contains(f.calc_text, q):
                    matched = "calc"
                else:
                    continue
                results.fields.append(
                    SearchHit("field", f.name, db.name, table.name, matched)
                )

        for script in db.scripts:
            if _contains(script.name, q):
                results.scripts.append(
                    SearchHit("script", script.name, db.name)
                )

        for layout in db.layouts:
            if _contains(layout.name, q):
                results.layouts.append(
                    SearchHit("layout", layout.name, db.name)
                )

        for to in db.table_occurrences:
            if _contains(to.name, q):
                results.tos.append(
                    SearchHit("table_occurrence", to.name, db.name)
                )

        for vl in db.value_lists:
            if _contains(vl.name, q):
                results.value_lists.append(
                    SearchHit("value_list", vl.name, db.name)
                )

        for cf in db.custom_functions:
            if _contains(cf.name, q):
                matched = "name"
            elif _contains(cf.calculation, q):
                matched = "body"
            else:
                continue
            results.custom_functions.append(
                SearchHit(
                    "custom_function", cf.name, db.name, matched_in=matched
                )
            )

    logger.debug("search complete", query=q, total=results.total)
    return results


# ---------------------------------------------------------------------------
# History storage
# ---------------------------------------------------------------------------


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def clear(self, key: str) -> None: ...


class MemoryStore:
    """In-process store, mostly for tests."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Keys persisted together in a single JSON object on disk.

    An unreadable or malformed file is treated as empty and rewritten
    on the next ``set``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(
                "unreadable store", path=str(self.path), error=str(e)
            )
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get(self, key: str) -> Any | None:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def clear(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class SearchHistory:
    """Most-recent-first query history, deduplicated ignoring case."""

    def __init__(
        self,
        store: KeyValueStore,
        max_items: int = SEARCH_HISTORY_MAX_ITEMS,
        key: str = SEARCH_HISTORY_KEY,
    ) -> None:
        self.store = store
        self.max_items = max_items
        self.key = key

    def items(self) -> list[str]:
        saved = self.store.get(self.key)
        if not isinstance(saved, list):
            return []
        return [q for q in saved if isinstance(q, str)]

    def add(self, query: str) -> list[str]:
        if not query or len(query) < SEARCH_MIN_QUERY_LENGTH:
            return self.items()
        lowered = query.lower()
        rest = [q for q in self.items() if q.lower() != lowered]
        history = [query, *rest][: self.max_items]
        self.store.set(self.key, history)
        return history

    def remove(self, query: str) -> list[str]:
        history = [q for q in self.items() if q != query]
        self.store.set(self.key, history)
        return history

    def clear(self) -> None:
        self.store.clear(self.key)
