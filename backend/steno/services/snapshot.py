"""
Steno Backend — Snapshot Import/Export
=======================================

What:  Reads and writes a JSON dump of every quote partition.
Why:   Lets an operator seed a fresh Redis from a file and keep a plain-text
       copy of all quotes when the service stops.
How:   aiofiles for non-blocking file I/O; the store's dump()/load() for data.
When:  load_snapshot at startup, write_snapshot at shutdown, both only when
       SNAPSHOT_PATH is configured.

File format:
    {
        "<guild_id>:<user_id>:quotes": [
            {"id": "…", "author_id": "…", "str": "…", "date": "…", "stenographer_id": ""},
            …
        ],
        …
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import aiofiles
from pydantic import TypeAdapter, ValidationError

from steno.schemas.quote import Quote
from steno.services.store_base import QuoteStore

logger = logging.getLogger(__name__)

# Only the outer shape is checked in one pass; partitions and quotes are
# validated one by one so a single bad entry cannot block a restore
SnapshotFile = TypeAdapter(Dict[str, Any])


async def load_snapshot(store: QuoteStore, path: str) -> int:
    """
    Load the snapshot at `path` into `store`, replacing the partitions it names.

    A missing file is not an error: there is simply nothing to restore yet.
    A partition that is not a list, or a quote that does not validate, is
    logged and skipped; the rest of the file still loads.

    Returns:
        Number of partitions loaded.

    Raises:
        ValueError: the file is not a JSON object
    """
    snapshot = Path(path)
    if not snapshot.exists():
        logger.info("No snapshot at %s, starting empty", snapshot)
        return 0

    async with aiofiles.open(snapshot, mode="rb") as f:
        raw = await f.read()

    try:
        partitions = SnapshotFile.validate_json(raw)
    except ValidationError as e:
        raise ValueError(f"Snapshot {snapshot} is not valid: {e.error_count()} errors") from e

    data: Dict[str, List[Quote]] = {}
    for key, entries in partitions.items():
        if not isinstance(entries, list):
            logger.warning("Skipping partition %s in %s: not a list", key, snapshot)
            continue
        quotes: List[Quote] = []
        for entry in entries:
            try:
                quotes.append(Quote.model_validate(entry))
            except ValidationError as e:
                logger.warning("Skipping invalid quote in %s: %d errors", key, e.error_count())
        data[key] = quotes

    await store.load(data)
    logger.info(
        "Restored %d partitions (%d quotes) from %s",
        len(data),
        sum(len(quotes) for quotes in data.values()),
        snapshot,
    )
    return len(data)


async def write_snapshot(store: QuoteStore, path: str) -> int:
    """
    Dump every partition of `store` to `path` as JSON.

    Writes to a temporary sibling first and renames it into place so a crash
    mid-write never leaves a truncated snapshot.

    Returns:
        Number of partitions written.
    """
    data = await store.dump()
    payload = {
        key: [quote.to_response() for quote in quotes]
        for key, quotes in data.items()
    }

    snapshot = Path(path)
    snapshot.parent.mkdir(parents=True, exist_ok=True)
    tmp = snapshot.with_suffix(snapshot.suffix + ".tmp")

    async with aiofiles.open(tmp, mode="w", encoding="utf-8") as f:
        await f.write(json.dumps(payload))
    tmp.replace(snapshot)

    logger.info("Wrote %d partitions to %s", len(payload), snapshot)
    return len(payload)
