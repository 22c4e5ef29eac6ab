"""
Store lifecycle.

Opens the configured NoteStore and holds it as process-wide state with an
explicit lifecycle: initialize once at startup, hand the store to callers,
close it at shutdown.

Callers that manage their own lifecycle (tests, scripts) can use
open_store() directly and inject the result wherever a store is needed.
"""

import asyncio
import logging

from notestore.config import Config, config as default_config
from notestore.note import (
    BuilderNoteStore,
    ConnectionNoteStore,
    DocumentNoteStore,
    NoteStore,
    PoolNoteStore,
)

logger = logging.getLogger(__name__)

BACKENDS = ("connection", "pool", "builder", "document")

_store: NoteStore | None = None
_lock = asyncio.Lock()


# =============================================================================
# Store Construction
# =============================================================================


async def open_store(cfg: Config | None = None) -> NoteStore:
    """
    Open a store for the configured backend.

    The connection, pool, engine or client is established before this
    returns, so an unreachable database fails here rather than on the
    first query.

    Args:
        cfg: Configuration to use, defaults to the environment's

    Returns:
        A ready NoteStore that owns its handle

    Raises:
        ValueError: if ``cfg.backend`` is not a known backend name
        ConnectionError: if the backend cannot be reached
    """
    cfg = cfg or default_config
    logger.info("Opening %s note store", cfg.backend)

    if cfg.backend == "connection":
        return await ConnectionNoteStore.connect(
            cfg.database_url, connect_timeout=cfg.connect_timeout
        )
    if cfg.backend == "pool":
        return await PoolNoteStore.open(
            cfg.database_url,
            min_size=cfg.pool_min_size,
            max_size=cfg.pool_max_size,
            timeout=cfg.connect_timeout,
        )
    if cfg.backend == "builder":
        return await BuilderNoteStore.open(cfg.database_url)
    if cfg.backend == "document":
        return await DocumentNoteStore.open(
            cfg.mongo_url, cfg.mongo_database, connect_timeout=cfg.connect_timeout
        )
    raise ValueError(
        f"Unknown backend {cfg.backend!r}, expected one of: {', '.join(BACKENDS)}"
    )


# =============================================================================
# Process-wide Store
# =============================================================================


async def init_store(cfg: Config | None = None) -> NoteStore:
    """
    Open the process-wide store. Safe to call multiple times; later calls
    return the store opened by the first.
    """
    global _store
    async with _lock:
        if _store is None:
            _store = await open_store(cfg)
        return _store


def get_store() -> NoteStore:
    """Return the process-wide store."""
    if _store is None:
        raise RuntimeError("Note store is not initialized. Call init_store() first.")
    return _store


async def close_store() -> None:
    """Close and reset the process-wide store."""
    global _store
    async with _lock:
        if _store is not None:
            await _store.close()
            _store = None
