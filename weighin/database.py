"""JSON document store.

The whole application state lives in one JSON file. Reads are served from an
in-memory snapshot; every update re-reads the file, applies a mutator to a
draft, writes the draft back and only then swaps the snapshot. Updates are
serialized through a single FIFO lock so each one observes the previous
one's write.

A process killed halfway through a write can leave a truncated file; there is
no temp-file rename and no recovery from a corrupt document.
"""
import asyncio
import copy
import inspect
import logging
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

from fastapi import Request
from pydantic import ValidationError

from weighin.exceptions import StoreCorruptedError
from weighin.models import Database

logger = logging.getLogger(__name__)

T = TypeVar("T")

Mutator = Callable[[Database], T | Awaitable[T]]


class JsonStore:
    def __init__(self, path: Path | str, seed: Callable[[], Database] | None = None):
        self.path = Path(path)
        self._seed = seed or Database
        self._cache: Database | None = None
        # asyncio.Lock wakes waiters in FIFO order
        self._lock = asyncio.Lock()

    async def open(self) -> None:
        """Load the document, seeding it when the file does not exist yet."""
        async with self._lock:
            self._cache = await self._load()
        logger.info("Opened store at %s", self.path)

    async def close(self) -> None:
        """Wait for the in-flight update, then drop the cached snapshot."""
        async with self._lock:
            self._cache = None
        logger.info("Closed store at %s", self.path)

    async def read(self) -> Database:
        """Return a copy of the current snapshot the caller may mutate freely."""
        if self._cache is None:
            async with self._lock:
                if self._cache is None:
                    self._cache = await self._load()
        return self._cache.model_copy(deep=True)

    async def update(self, mutator: Mutator[T]) -> T:
        """Apply ``mutator`` to a fresh draft and persist it before returning.

        The mutator may be a plain function or a coroutine function. If it
        raises, nothing is written and the next queued update proceeds.
        """
        async with self._lock:
            current = await self._load()
            self._cache = current
            draft = current.model_copy(deep=True)

            result = mutator(draft)
            if inspect.isawaitable(result):
                result = await result

            await asyncio.to_thread(self._write, draft)
            self._cache = draft
            return copy.deepcopy(result)

    async def _load(self) -> Database:
        exists = await asyncio.to_thread(self.path.exists)
        if not exists:
            logger.info("No store at %s, seeding a fresh document", self.path)
            data = self._seed()
            await asyncio.to_thread(self._write, data)
            return data

        raw = await asyncio.to_thread(self.path.read_text, "utf-8")
        try:
            return Database.model_validate_json(raw)
        except ValidationError as exc:
            logger.error("Store at %s is corrupt: %s", self.path, exc)
            raise StoreCorruptedError(f"Cannot parse store at {self.path}") from exc

    def _write(self, data: Database) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(data.model_dump_json(indent=2), encoding="utf-8")


def get_store(request: Request) -> JsonStore:
    """Dependency for the store owned by the running app."""
    return request.app.state.store
