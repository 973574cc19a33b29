"""InMemoryKeyValueStore semantics shared with the Redis backend."""

from typing import Any

import pytest

from src.sf_store.domain.repository import split_path
from src.sf_store.infrastructure.memory_store import InMemoryKeyValueStore


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


class TestSplitPath:
    def test_record(self) -> None:
        assert split_path("orders/abc") == ("orders", "abc")

    def test_collection(self) -> None:
        assert split_path("orders") == ("orders", None)

    @pytest.mark.parametrize("path", ["", "/", "a/b/c", "orders//x"])
    def test_invalid(self, path: str) -> None:
        with pytest.raises(ValueError):
            split_path(path)


class TestReadWrite:
    async def test_set_get(self, kv: InMemoryKeyValueStore) -> None:
        await kv.set("products/p1", {"name": "A"})
        assert await kv.get("products/p1") == {"name": "A"}

    async def test_reads_are_detached_copies(self, kv: InMemoryKeyValueStore) -> None:
        await kv.set("products/p1", {"tags": ["x"]})
        value = await kv.get("products/p1")
        value["tags"].append("y")
        assert await kv.get("products/p1") == {"tags": ["x"]}

    async def test_update_merges_and_none_deletes(self, kv: InMemoryKeyValueStore) -> None:
        await kv.set("users/u1", {"a": 1, "b": 2})
        await kv.update("users/u1", {"b": None, "c": 3})
        assert await kv.get("users/u1") == {"a": 1, "c": 3}

    async def test_collection_update_removes_children(self, kv: InMemoryKeyValueStore) -> None:
        await kv.set("orders/o1", {"x": 1})
        await kv.set("orders/o2", {"x": 2})
        await kv.update("orders", {"o1": None})
        assert set(await kv.children("orders")) == {"o2"}

    async def test_remove(self, kv: InMemoryKeyValueStore) -> None:
        await kv.set("orders/o1", {"x": 1})
        await kv.remove("orders/o1")
        assert await kv.get("orders/o1") is None

    async def test_empty_collection_reads_as_none(self, kv: InMemoryKeyValueStore) -> None:
        assert await kv.get("orders") is None
        assert await kv.children("orders") == {}

    async def test_scalar_values(self, kv: InMemoryKeyValueStore) -> None:
        await kv.set("settings/banner", "banner.png")
        assert await kv.get("settings/banner") == "banner.png"

    async def test_non_serializable_value_rejected(self, kv: InMemoryKeyValueStore) -> None:
        with pytest.raises(TypeError):
            await kv.set("orders/o1", {"when": object()})

    def test_push_keys_are_ordered(self, kv: InMemoryKeyValueStore) -> None:
        keys = [kv.push_key("orders") for _ in range(20)]
        assert keys == sorted(keys)
        assert len(set(keys)) == 20


class TestTransaction:
    async def test_commit(self, kv: InMemoryKeyValueStore) -> None:
        await kv.set("products/p1", {"stock": 5})

        committed, value = await kv.transaction("products/p1", lambda cur: {**cur, "stock": cur["stock"] - 1})

        assert committed
        assert value == {"stock": 4}
        assert await kv.get("products/p1") == {"stock": 4}

    async def test_abort_returns_current(self, kv: InMemoryKeyValueStore) -> None:
        await kv.set("products/p1", {"stock": 5})

        committed, value = await kv.transaction("products/p1", lambda cur: None)

        assert not committed
        assert value == {"stock": 5}

    async def test_missing_record(self, kv: InMemoryKeyValueStore) -> None:
        seen: list[Any] = []

        def fn(cur: Any) -> None:
            seen.append(cur)

        assert await kv.transaction("products/none", fn) == (False, None)
        assert seen == [None]

    async def test_collection_path_rejected(self, kv: InMemoryKeyValueStore) -> None:
        with pytest.raises(ValueError):
            await kv.transaction("products", lambda cur: cur)

    async def test_exception_in_fn_leaves_record_unchanged(self, kv: InMemoryKeyValueStore) -> None:
        await kv.set("products/p1", {"stock": 5})

        def boom(cur: Any) -> Any:
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            await kv.transaction("products/p1", boom)
        assert await kv.get("products/p1") == {"stock": 5}


class TestSubscribe:
    async def test_initial_and_change_snapshots(self, kv: InMemoryKeyValueStore) -> None:
        snapshots: list[dict[str, Any]] = []

        async def on_change(snapshot: dict[str, Any]) -> None:
            snapshots.append(snapshot)

        unsubscribe = await kv.subscribe("orders", on_change)
        await kv.set("orders/o1", {"x": 1})
        await kv.set("products/p1", {"y": 1})
        await unsubscribe()
        await kv.set("orders/o2", {"x": 2})

        assert snapshots == [{}, {"o1": {"x": 1}}]

    async def test_failing_subscriber_does_not_fail_write(self, kv: InMemoryKeyValueStore) -> None:
        async def broken(snapshot: dict[str, Any]) -> None:
            raise RuntimeError("subscriber bug")

        await kv.subscribe("orders", broken)
        await kv.set("orders/o1", {"x": 1})

        assert await kv.get("orders/o1") == {"x": 1}
