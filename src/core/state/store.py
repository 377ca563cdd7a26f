"""
LockBot - State Store
=====================

Durable JSON store mapping guild id to GuildState.

DESIGN:
    One JSON document holds every guild: {"guilds": {"<id>": {...}}}.
    Every mutation runs through a single asyncio.Lock, and asyncio wakes
    lock waiters in FIFO order, so read-modify-write cycles from commands,
    button confirms and timers never interleave and run in request order.

    Writes go to a temp file in the same directory and are swapped in with
    os.replace(), so a crash leaves either the old or the new document on
    disk, never a truncated one. Because of that, get() reads without the
    lock.

    A missing file is an empty store and is initialized on first access.
    A file that exists but cannot be parsed raises StateStoreError and is
    never overwritten.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Union

import aiofiles

from src.core.errors import StateStoreError
from src.core.logger import logger
from src.core.state.models import GuildState


UpdateFn = Callable[[GuildState], Awaitable[GuildState]]


# =============================================================================
# State Store
# =============================================================================

class StateStore:
    """
    Serialized key-value store of guild maintenance state.

    Attributes:
        path: Location of the JSON document.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    # =========================================================================
    # File IO
    # =========================================================================

    async def _read_document(self) -> Dict[str, Any]:
        """Read and validate the whole document, initializing it if absent."""
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            document: Dict[str, Any] = {"guilds": {}}
            await self._write_document(document)
            logger.tree("State File Initialized", [
                ("Path", str(self.path)),
            ], emoji="📁")
            return document
        except OSError as e:
            raise StateStoreError(f"Cannot read state file {self.path}: {e}") from e

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StateStoreError(f"State file {self.path} is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise StateStoreError(f"State file {self.path} must contain a JSON object")

        guilds = document.setdefault("guilds", {})
        if not isinstance(guilds, dict):
            raise StateStoreError(f"State file {self.path} has a malformed 'guilds' map")

        return document

    async def _write_document(self, document: Dict[str, Any]) -> None:
        """Write the whole document to a temp file and swap it in."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(f"{self.path.name}.tmp")

        async with aiofiles.open(tmp, "w", encoding="utf-8") as f:
            await f.write(json.dumps(document, indent=2, ensure_ascii=False) + "\n")
        os.replace(tmp, self.path)

    # =========================================================================
    # Public API
    # =========================================================================

    async def _read_for_query(self) -> Dict[str, Any]:
        # Initializing the file is a write, so it must not race a locked writer
        if not self.path.exists():
            async with self._lock:
                return await self._read_document()
        return await self._read_document()

    async def get(self, guild_id: int) -> GuildState:
        """Current state for a guild, or defaults when none is stored."""
        document = await self._read_for_query()
        return GuildState.from_dict(document["guilds"].get(str(guild_id)))

    async def all_states(self) -> Dict[int, GuildState]:
        """Every stored guild state, keyed by guild id."""
        document = await self._read_for_query()
        states: Dict[int, GuildState] = {}
        for key, record in document["guilds"].items():
            try:
                states[int(key)] = GuildState.from_dict(record)
            except ValueError:
                logger.warning("Skipping State Record With Bad Key", [
                    ("Key", str(key)),
                ])
        return states

    async def replace(self, guild_id: int, state: GuildState) -> GuildState:
        """Persist a state unconditionally."""
        async with self._lock:
            document = await self._read_document()
            document["guilds"][str(guild_id)] = state.to_dict()
            await self._write_document(document)
            return state.copy()

    async def update(self, guild_id: int, fn: UpdateFn) -> GuildState:
        """
        Read-modify-write one guild's state under the store lock.

        Args:
            guild_id: Guild to update.
            fn: Async callable receiving a deep copy of the current state and
                returning the new state. If it raises, nothing is written.

        Returns:
            The persisted state.
        """
        async with self._lock:
            document = await self._read_document()
            current = GuildState.from_dict(document["guilds"].get(str(guild_id)))

            updated = await fn(current.copy())

            document["guilds"][str(guild_id)] = updated.to_dict()
            await self._write_document(document)
            return updated

    async def delete(self, guild_id: int) -> None:
        """Remove a guild's record, if any."""
        async with self._lock:
            document = await self._read_document()
            if document["guilds"].pop(str(guild_id), None) is not None:
                await self._write_document(document)
                logger.debug("Guild State Deleted", [("Guild ID", str(guild_id))])


__all__ = ["StateStore", "UpdateFn"]
