"""Tests for the SQLAlchemy-backed document store."""

import pytest

from learnpath.db.store import (
    CONTAINER_SCOPE,
    DocumentConflict,
    PreconditionFailed,
    read_modify_replace,
)


async def test_create_then_read_round_trips_body_and_etag(store):
    created = await store.create("things", {"id": "a", "type": "thing", "n": 1}, partition_key="p1")

    assert created["_etag"]
    read = await store.read("things", "a", partition_key="p1")
    assert read["n"] == 1
    assert read["type"] == "thing"
    assert read["_etag"] == created["_etag"]


async def test_read_is_scoped_to_partition(store):
    await store.create("things", {"id": "a"}, partition_key="p1")

    assert await store.read("things", "a", partition_key="p2") is None
    assert await store.read("other", "a", partition_key="p1") is None


async def test_create_duplicate_id_conflicts(store):
    await store.create("things", {"id": "a"}, partition_key="p1")

    with pytest.raises(DocumentConflict):
        await store.create("things", {"id": "a"}, partition_key="p1")


async def test_unique_key_is_scoped_to_partition_by_default(store):
    await store.create("things", {"id": "a", "name": "x"}, partition_key="p1", unique_keys={"name": "x"})
    # Same value in another partition is fine
    await store.create("things", {"id": "b", "name": "x"}, partition_key="p2", unique_keys={"name": "x"})

    with pytest.raises(DocumentConflict):
        await store.create("things", {"id": "c", "name": "x"}, partition_key="p1", unique_keys={"name": "x"})

    # The failed create left nothing behind
    assert await store.read("things", "c", partition_key="p1") is None


async def test_container_scoped_unique_key_spans_partitions(store):
    await store.create(
        "users", {"id": "u1"}, partition_key="u1",
        unique_keys={"email": "a@example.com"}, unique_scope=CONTAINER_SCOPE,
    )

    with pytest.raises(DocumentConflict):
        await store.create(
            "users", {"id": "u2"}, partition_key="u2",
            unique_keys={"email": "a@example.com"}, unique_scope=CONTAINER_SCOPE,
        )


async def test_replace_with_stale_etag_fails(store):
    doc = await store.create("things", {"id": "a", "n": 1}, partition_key="p1")

    first = await store.replace("things", {**doc, "n": 2}, partition_key="p1")
    assert first["_etag"] != doc["_etag"]

    with pytest.raises(PreconditionFailed):
        await store.replace("things", {**doc, "n": 3}, partition_key="p1")

    current = await store.read("things", "a", partition_key="p1")
    assert current["n"] == 2


async def test_replace_missing_document_fails(store):
    with pytest.raises(PreconditionFailed):
        await store.replace("things", {"id": "nope"}, partition_key="p1")


async def test_query_filters_on_type_partition_and_fields(store):
    await store.create("things", {"id": "a", "type": "t", "color": "red", "live": True}, partition_key="p1")
    await store.create("things", {"id": "b", "type": "t", "color": "blue", "live": False}, partition_key="p1")
    await store.create("things", {"id": "c", "type": "u", "color": "red", "live": True}, partition_key="p1")
    await store.create("things", {"id": "d", "type": "t", "color": "red", "live": True}, partition_key="p2")

    red = await store.query("things", partition_key="p1", doc_type="t", color="red")
    assert [d["id"] for d in red] == ["a"]

    live = await store.query("things", live=True)
    assert sorted(d["id"] for d in live) == ["a", "c", "d"]


async def test_query_orders_by_field(store):
    for doc_id, stamp in [("a", "2026-01-02T00:00:00"), ("b", "2026-01-03T00:00:00"), ("c", "2026-01-01T00:00:00")]:
        await store.create("things", {"id": doc_id, "at": stamp}, partition_key="p1")

    newest_first = await store.query("things", partition_key="p1", order_by="at", descending=True)
    assert [d["id"] for d in newest_first] == ["b", "a", "c"]


async def test_delete_releases_unique_keys(store):
    await store.create("things", {"id": "a"}, partition_key="p1", unique_keys={"name": "x"})

    assert await store.delete("things", "a", partition_key="p1") is True
    assert await store.delete("things", "a", partition_key="p1") is False

    await store.create("things", {"id": "b"}, partition_key="p1", unique_keys={"name": "x"})


async def test_read_modify_replace_reapplies_after_lost_race(store):
    await store.create("things", {"id": "a", "tags": []}, partition_key="p1")
    interfered = False

    def add_tag(doc):
        doc["tags"] = doc["tags"] + ["mine"]

    real_replace = store.replace

    async def racing_replace(container, body, **kwargs):
        nonlocal interfered
        if not interfered:
            interfered = True
            # Another writer sneaks in between our read and our write
            current = await store.read(container, body["id"], partition_key=kwargs["partition_key"])
            await real_replace(container, {**current, "tags": current["tags"] + ["theirs"]}, **kwargs)
        return await real_replace(container, body, **kwargs)

    store.replace = racing_replace
    result = await read_modify_replace(store, "things", "a", partition_key="p1", mutate=add_tag)

    assert result["tags"] == ["theirs", "mine"]


async def test_read_modify_replace_missing_returns_none(store):
    result = await read_modify_replace(store, "things", "nope", partition_key="p1", mutate=lambda d: None)
    assert result is None


async def test_count_applies_query_filters(store):
    await store.create("things", {"id": "a", "type": "t", "live": True}, partition_key="p1")
    await store.create("things", {"id": "b", "type": "t", "live": False}, partition_key="p1")
    await store.create("things", {"id": "c", "type": "u", "live": True}, partition_key="p2")

    assert await store.count("things") == 3
    assert await store.count("things", partition_key="p1") == 2
    assert await store.count("things", doc_type="t", live=True) == 1
    assert await store.count("empty") == 0
