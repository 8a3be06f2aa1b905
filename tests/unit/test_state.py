from __future__ import annotations

import pytest

from oda_crawler.adapters.base import ProductRecord
from oda_crawler.engines.state import ResultStore


@pytest.mark.unit
def test_mark_visited_is_check_and_insert(store):
    assert store.mark_visited("/no/") is True
    assert store.mark_visited("/no/") is False
    assert store.is_visited("/no/")
    assert store.visited_count == 1


@pytest.mark.unit
def test_product_overwrite_keeps_one_record(store):
    store.put_product("123", ProductRecord(name="Milk", price=40))
    store.put_product("123", ProductRecord(name="Milk", price=45))

    snapshot = store.snapshot()

    assert snapshot.products == {"123": ProductRecord(name="Milk", price=45)}


@pytest.mark.unit
def test_snapshot_is_detached_and_sorted():
    store = ResultStore()
    store.add_broken_link("/b")
    store.add_broken_link("/a")
    store.add_broken_link("/b")

    snapshot = store.snapshot()
    store.add_broken_link("/c")

    assert snapshot.broken_links == ["/a", "/b"]
