"""JSON-persisted in-memory collections.

Each collection keeps authoritative state in process memory and mirrors it to
a KeyValueStore as one JSON array under its own key:
- Read once on startup (``load``)
- Written after every mutation by a fire-and-forget writer

The writer coalesces bursts of mutations and always serializes the current
snapshot, so the last write on disk reflects the latest in-memory state.
Write failures are logged and swallowed; memory stays authoritative.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Generic, TypeVar

import orjson
from pydantic import BaseModel, ValidationError

from sitmon.core.logging import get_logger

if TYPE_CHECKING:
    from sitmon.storage.kv import KeyValueStore

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class JsonCollection(Generic[ModelT]):
    """Id-keyed collection of pydantic records with write-behind persistence.

    Records must expose an ``id`` attribute. Iteration order is insertion order.
    """

    def __init__(
        self,
        model: type[ModelT],
        key: str,
        kv: KeyValueStore | None = None,
    ) -> None:
        self.model = model
        self.key = key
        self._kv = kv
        self._items: dict[str, ModelT] = {}
        self._dirty = False
        self._writer: asyncio.Task[None] | None = None

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, item_id: str) -> ModelT | None:
        return self._items.get(item_id)

    def list(self) -> list[ModelT]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[ModelT]:
        return iter(list(self._items.values()))

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def insert(self, item: ModelT) -> None:
        """Insert or replace a record by id."""
        self._items[item.id] = item  # type: ignore[attr-defined]
        self._schedule_persist()

    def replace(self, item: ModelT) -> None:
        """Replace an existing record in place, keeping its position."""
        item_id = item.id  # type: ignore[attr-defined]
        if item_id not in self._items:
            raise KeyError(item_id)
        self._items[item_id] = item
        self._schedule_persist()

    def remove(self, item_id: str) -> ModelT | None:
        removed = self._items.pop(item_id, None)
        if removed is not None:
            self._schedule_persist()
        return removed

    def remove_where(self, predicate: Callable[[ModelT], bool]) -> list[ModelT]:
        """Remove every record matching ``predicate`` and return them."""
        removed = [item for item in self._items.values() if predicate(item)]
        for item in removed:
            del self._items[item.id]  # type: ignore[attr-defined]
        if removed:
            self._schedule_persist()
        return removed

    def clear(self) -> int:
        count = len(self._items)
        self._items.clear()
        self._schedule_persist()
        return count

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _serialize(self) -> str:
        payload = [item.model_dump(mode="json") for item in self._items.values()]
        return orjson.dumps(payload).decode()

    async def load(self) -> int:
        """Load records from the key-value store, replacing memory contents.

        Records that no longer validate are skipped. A failed read leaves the
        collection empty rather than aborting startup.

        Returns:
            Number of records loaded
        """
        if self._kv is None:
            return 0

        try:
            raw = await self._kv.get(self.key)
        except Exception as e:
            logger.warning("Failed to read collection", key=self.key, error=str(e))
            return 0

        if not raw:
            return 0

        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            logger.warning("Stored collection is not valid JSON", key=self.key, error=str(e))
            return 0

        if not isinstance(data, list):
            logger.warning("Stored collection is not a list", key=self.key)
            return 0

        self._items.clear()
        skipped = 0
        for entry in data:
            try:
                item = self.model.model_validate(entry)
            except ValidationError:
                skipped += 1
                continue
            self._items[item.id] = item  # type: ignore[attr-defined]

        logger.info(
            "Collection loaded",
            key=self.key,
            count=len(self._items),
            skipped=skipped,
        )
        return len(self._items)

    def _schedule_persist(self) -> None:
        if self._kv is None:
            return
        self._dirty = True
        if self._writer is not None and not self._writer.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, persistence deferred", key=self.key)
            return
        self._writer = loop.create_task(self._write_loop())

    async def _write_loop(self) -> None:
        assert self._kv is not None
        while self._dirty:
            self._dirty = False
            payload = self._serialize()
            try:
                await self._kv.set(self.key, payload)
            except Exception as e:
                logger.warning("Failed to persist collection", key=self.key, error=str(e))

    async def flush(self) -> None:
        """Wait for pending writes; writes now if a mutation was deferred."""
        if self._writer is not None and not self._writer.done():
            await self._writer
        if self._dirty and self._kv is not None:
            await self._write_loop()
