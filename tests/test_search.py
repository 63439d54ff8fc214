"""Tests for global search and search history."""

import json

import pytest

from ddrscope.paths import get_data_dir, history_path
from ddrscope.search import (
    JsonFileStore,
    MemoryStore,
    SearchHistory,
    normalize_query,
    search_corpus,
)


class TestSearchCorpus:
    def test_across_kinds_and_databases(self, corpus):
        results = search_corpus(corpus.databases, "ORDER")
        assert [(h.kind, h.name, h.db) for h in results.tables] == [
            ("table", "Orders", "Orders")
        ]
        assert [(h.name, h.db) for h in results.scripts] == [
            ("Sync Orders", "Contacts"),
            ("Pull Orders", "Orders"),
        ]
        assert [h.name for h in results.layouts] == ["Orders"]
        assert [h.name for h in results.tos] == ["Remote Orders", "Orders"]
        assert results.fields == []
        assert results.total == 6

    def test_fields_match_name_then_calc(self, corpus):
        results = search_corpus(corpus.databases, "first")
        assert [(h.name, h.table, h.matched_in) for h in results.fields] == [
            ("First Name", "Contacts", "name"),
            ("Full Name", "Contacts", "calc"),
            ("Welcome", "Contacts", "calc"),
        ]

    def test_custom_functions_match_body(self, corpus):
        results = search_corpus(corpus.databases, "hello")
        (hit,) = results.custom_functions
        assert (hit.name, hit.matched_in) == ("Greeting", "body")

        (hit,) = search_corpus(corpus.databases, "clamp").custom_functions
        assert hit.matched_in == "name"

    def test_value_lists(self, corpus):
        results = search_corpus(corpus.databases, "status")
        assert [h.kind for h in results.value_lists] == ["value_list"]
        assert [h.name for h in results.fields] == ["Status"]

    @pytest.mark.parametrize("query", ["", "a", "  b  ", None])
    def test_short_queries_return_nothing(self, corpus, query):
        results = search_corpus(corpus.databases, query)
        assert results.total == 0

    def test_output_shape(self, corpus):
        d = search_corpus(corpus.databases, " Archive ").to_dict()
        assert d["query"] == "Archive"
        assert d["total"] == 1
        assert d["scripts"] == [
            {
                "kind": "script",
                "name": "Archive",
                "db": "Contacts",
                "matchedIn": "name",
            }
        ]
        assert list(d)[2:] == [
            "tables",
            "fields",
            "scripts",
            "layouts",
            "tos",
            "valueLists",
            "customFunctions",
        ]


class TestNormalizeQuery:
    def test_trims_and_lowercases(self):
        assert normalize_query("  Contacts ") == "contacts"

    def test_too_short(self):
        assert normalize_query(" x ") is None


class TestSearchHistory:
    def test_most_recent_first_without_duplicates(self):
        history = SearchHistory(MemoryStore())
        history.add("contacts")
        history.add("orders")
        assert history.add("CONTACTS") == ["CONTACTS", "orders"]
        assert history.items() == ["CONTACTS", "orders"]

    def test_short_queries_ignored(self):
        history = SearchHistory(MemoryStore())
        history.add("ok")
        assert history.add("x") == ["ok"]

    def test_capped(self):
        history = SearchHistory(MemoryStore(), max_items=3)
        for q in ["aa", "bb", "cc", "dd"]:
            history.add(q)
        assert history.items() == ["dd", "cc", "bb"]

    def test_default_cap_is_ten(self):
        history = SearchHistory(MemoryStore())
        for i in range(15):
            history.add(f"query {i}")
        assert len(history.items()) == 10
        assert history.items()[0] == "query 14"

    def test_remove_is_exact(self):
        history = SearchHistory(MemoryStore())
        history.add("Orders")
        history.add("scripts")
        assert history.remove("orders") == ["scripts", "Orders"]
        assert history.remove("Orders") == ["scripts"]

    def test_clear(self):
        store = MemoryStore()
        history = SearchHistory(store)
        history.add("orders")
        history.clear()
        assert history.items() == []
        assert store.get(history.key) is None

    def test_ignores_foreign_values(self):
        store = MemoryStore()
        store.set("ddr-search-history", {"not": "a list"})
        assert SearchHistory(store).items() == []


class TestJsonFileStore:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "history.json"
        SearchHistory(JsonFileStore(path)).add("orders")
        assert SearchHistory(JsonFileStore(path)).items() == ["orders"]
        assert json.loads(path.read_text()) == {
            "ddr-search-history": ["orders"]
        }

    def test_keeps_other_keys(self, tmp_path):
        store = JsonFileStore(tmp_path / "store.json")
        store.set("other", 1)
        store.set("ddr-search-history", ["aa"])
        store.clear("ddr-search-history")
        assert store.get("other") == 1
        assert store.get("ddr-search-history") is None

    def test_corrupt_file_treated_as_empty(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text("{not json")
        history = SearchHistory(JsonFileStore(path))
        assert history.items() == []
        history.add("orders")
        assert history.items() == ["orders"]

    def test_missing_file(self, tmp_path):
        store = JsonFileStore(tmp_path / "absent.json")
        assert store.get("anything") is None
        store.clear("anything")
        assert not (tmp_path / "absent.json").exists()


class TestPaths:
    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DDRSCOPE_DATA_DIR", str(tmp_path))
        assert get_data_dir() == tmp_path
        assert history_path() == tmp_path / "history.json"

    def test_xdg_cache(self, monkeypatch, tmp_path):
        monkeypatch.delenv("DDRSCOPE_DATA_DIR", raising=False)
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
        assert get_data_dir() == tmp_path / "ddrscope"

    def test_explicit_dir(self, tmp_path):
        assert history_path(tmp_path) == tmp_path / "history.json"
