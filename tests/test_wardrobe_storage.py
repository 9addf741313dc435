"""Wardrobe taxonomy, item model and SQLite repository tests."""

from __future__ import annotations

import sqlite3
from contextlib import closing

import pytest

from curator_app.errors import ConstraintViolation, NotFound, StorageFault
from models import taxonomy
from models.taxonomy import Category, ItemStatus, Style
from models.wardrobe_item import WardrobeItem, from_raw_metadata
from tools.wardrobe_store import ItemFilters

from conftest import axis_vector


def test_taxonomy_accepts_variants_and_rejects_unknown() -> None:
    assert taxonomy.validate_category("T-Shirt") is Category.T_SHIRT
    assert taxonomy.validate_category(" Full Suit ") is Category.FULL_SUIT
    assert taxonomy.validate_style("semi formal") is Style.SEMI_FORMAL
    with pytest.raises(ValueError):
        taxonomy.validate_category("cape")
    with pytest.raises(ValueError):
        taxonomy.validate_season("monsoon")


def test_wardrobe_item_normalises_labels_and_checks_embedding() -> None:
    item = from_raw_metadata(
        {
            "image_url": "/uploads/a.jpg",
            "category": "shirt",
            "style": "casual",
            "season": "summer",
            "colors": [" navy ", "navy", "white"],
            "tags": "linen",
        }
    )
    assert item.colors == ["navy", "white"]
    assert item.tags == ["linen"]
    assert item.status is ItemStatus.PROCESSING

    with pytest.raises(ValueError):
        WardrobeItem(image_url="/x.jpg", category="shirt", style="casual", season="any", embedding=[0.1, 0.2])
    with pytest.raises(ValueError):
        from_raw_metadata({"image_url": "/x.jpg", "category": "shirt"})


def test_insert_and_get_round_trip(store, add_item) -> None:
    created = add_item("pants", colors=["black"], tags=["wool", "office"], owner_id="user-1")
    fetched = store.get_item(created.item_id)

    assert fetched.category is Category.PANTS
    assert fetched.colors == ["black"]
    assert fetched.tags == ["wool", "office"]
    assert fetched.owner_id == "user-1"
    assert fetched.embedding == axis_vector(0)
    assert fetched.created_at is not None


def test_get_unknown_item_raises_not_found(store) -> None:
    with pytest.raises(NotFound):
        store.get_item("missing")


@pytest.mark.parametrize(
    "column,value",
    [
        ("category", "cape"),
        ("embedding", "[not json"),
        ("created_at", "yesterday"),
    ],
)
def test_undecodable_rows_raise_storage_fault(store, add_item, column, value) -> None:
    item = add_item("shirt")
    with closing(sqlite3.connect(store.database_path)) as conn:
        conn.execute(f"UPDATE wardrobe_items SET {column} = ? WHERE id = ?", (value, item.item_id))
        conn.commit()

    with pytest.raises(StorageFault):
        store.get_item(item.item_id)
    with pytest.raises(StorageFault):
        store.list_by_filters(ItemFilters())


def test_ready_item_requires_full_embedding(store) -> None:
    item = WardrobeItem(
        image_url="/uploads/a.jpg",
        category="shirt",
        style="casual",
        season="any",
        status=ItemStatus.READY,
    )
    with pytest.raises(ConstraintViolation):
        store.insert(item)


def test_similarity_orders_by_distance_and_keeps_insertion_order_on_ties(store, add_item) -> None:
    far = add_item("shoes", embedding=axis_vector(0, 3.0))
    tie_first = add_item("shirt", embedding=axis_vector(0, 2.0))
    tie_second = add_item("pants", embedding=axis_vector(0, 2.0))
    near = add_item("dress", embedding=axis_vector(0, 1.25))

    results = store.query_by_similarity(axis_vector(0), limit=10)

    assert [item.item_id for item, _ in results] == [
        near.item_id,
        tie_first.item_id,
        tie_second.item_id,
        far.item_id,
    ]
    distances = [distance for _, distance in results]
    assert distances == sorted(distances)
    assert distances[0] == pytest.approx(0.25)


def test_similarity_round_trip_returns_item_first_with_zero_distance(store, add_item) -> None:
    add_item("pants", embedding=axis_vector(3))
    target_vector = [0.01 * (index % 7) for index in range(512)]
    target = add_item("shirt", embedding=target_vector)

    results = store.query_by_similarity(target_vector, limit=5)

    assert results[0][0].item_id == target.item_id
    assert results[0][1] == pytest.approx(0.0, abs=1e-9)


def test_similarity_excludes_items_that_are_not_ready(store, add_item) -> None:
    ready = add_item("shirt", embedding=axis_vector(0, 5.0))
    add_item("pants", status=ItemStatus.PROCESSING)
    failed = add_item("shoes", embedding=axis_vector(0))
    store.mark_failed(failed.item_id)

    results = store.query_by_similarity(axis_vector(0), limit=10)

    assert [item.item_id for item, _ in results] == [ready.item_id]


def test_similarity_scopes_to_owner_and_ownerless_items(store, add_item) -> None:
    mine = add_item("shirt", owner_id="alice")
    shared = add_item("pants")
    add_item("shoes", owner_id="bob")

    ids = {item.item_id for item, _ in store.query_by_similarity(axis_vector(0), owner_id="alice")}

    assert ids == {mine.item_id, shared.item_id}


def test_update_embedding_marks_item_ready(store, add_item) -> None:
    pending = add_item("jacket", status=ItemStatus.PROCESSING)

    ready = store.update_embedding(pending.item_id, axis_vector(2), description="olive field jacket")

    assert ready.status is ItemStatus.READY
    assert ready.description == "olive field jacket"
    assert ready.is_searchable
    with pytest.raises(NotFound):
        store.update_embedding("missing", axis_vector(2))
    with pytest.raises(ConstraintViolation):
        store.update_embedding(pending.item_id, [1.0, 2.0])


def test_mark_failed_is_idempotent(store, add_item) -> None:
    item = add_item("shirt", status=ItemStatus.PROCESSING)

    assert store.mark_failed(item.item_id) is True
    assert store.mark_failed(item.item_id) is False
    assert store.mark_failed("missing") is False
    assert store.get_item(item.item_id).status is ItemStatus.FAILED


def test_keyword_query_matches_metadata_newest_first(store, add_item) -> None:
    older = add_item("shirt", description="striped linen shirt")
    newer = add_item("pants", description="linen trousers")
    add_item("shoes", description="leather loafers")
    add_item("dress", status=ItemStatus.PROCESSING, description="linen dress")

    results = store.query_by_keyword("LINEN")

    assert [item.item_id for item in results] == [newer.item_id, older.item_id]


def test_keyword_query_escapes_like_wildcards(store, add_item) -> None:
    add_item("shirt", description="plain tee")

    assert store.query_by_keyword("%") == []
    assert store.query_by_keyword("_") == []


def test_list_filters_match_any_of_tags(store, add_item) -> None:
    item = add_item("full_suit", tags=["wedding", "formal"])

    matching = store.list_by_filters(ItemFilters(tags=["casual", "wedding"]))
    not_matching = store.list_by_filters(ItemFilters(tags=["casual", "sporty"]))

    assert [found.item_id for found in matching] == [item.item_id]
    assert not_matching == []


def test_list_filters_paginate_and_sort(store, add_item) -> None:
    first = add_item("shirt", owner_id="alice")
    second = add_item("pants", owner_id="alice")
    third = add_item("shoes", owner_id="alice")
    add_item("dress", owner_id="bob")

    newest_first = store.list_by_filters(ItemFilters(user_id="alice"))
    oldest_page = store.list_by_filters(ItemFilters(user_id="alice"), limit=2, offset=1, direction="asc")

    assert [item.item_id for item in newest_first] == [third.item_id, second.item_id, first.item_id]
    assert [item.item_id for item in oldest_page] == [second.item_id, third.item_id]


def test_list_filters_exact_fields_and_free_text(store, add_item) -> None:
    dress = add_item("dress", style="formal", season="summer", colors=["red"])
    add_item("shirt", style="casual", colors=["blue"])

    assert [i.item_id for i in store.list_by_filters(ItemFilters(category="dress", style="formal"))] == [dress.item_id]
    assert [i.item_id for i in store.list_by_filters(ItemFilters(q="red"))] == [dress.item_id]
    assert [i.item_id for i in store.list_by_filters(ItemFilters(colors=["red", "green"]))] == [dress.item_id]
