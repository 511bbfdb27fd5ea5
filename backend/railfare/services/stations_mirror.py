"""
Stations mirror.

Serves the canonical stations list from the cache or the remote source, keeps
a local JSON copy of the last successful fetch, and falls back to that copy
when the remote source is unreachable.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from railfare.core.metrics import record_stations_refresh
from railfare.services.dto import StationsSnapshot
from railfare.services.errors import StationsUnavailableError, UpstreamError
from railfare.services.station_directory import StationDirectory
from railfare.services.upstream_client import UpstreamClient

logger = logging.getLogger(__name__)


def write_json_atomically(path: Path, document: Any) -> None:
    """Replace ``path`` with ``document`` in one step.

    The JSON is written to a sibling temp file and moved over the target, so
    readers see either the old or the new document, never a partial one.
    """
    payload = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


class StationsMirror:
    """Cached remote stations list with a local file fallback."""

    def __init__(
        self,
        client: UpstreamClient,
        directory: StationDirectory,
        fallback_path: str | Path,
    ) -> None:
        self._client = client
        self._directory = directory
        self.fallback_path = Path(fallback_path)
        self._loaded_document: Any = None
        self._persisted_document: Any = None

    @property
    def directory(self) -> StationDirectory:
        return self._directory

    async def get_stations(self) -> StationsSnapshot:
        """Return the stations list, preferring cache/remote over the local mirror.

        Raises:
            StationsUnavailableError: Remote and local mirror both failed. The
                status of the remote failure is carried along.
        """
        try:
            document = await self._client.fetch_stations()
        except UpstreamError as exc:
            logger.warning("Remote stations unavailable, trying local mirror: %s", exc)
            try:
                document = await self.read_fallback()
            except (OSError, ValueError) as fallback_exc:
                logger.error("Local stations mirror unusable: %s", fallback_exc)
                raise StationsUnavailableError(exc.status_code) from exc
            logger.warning("Serving stations from local mirror %s", self.fallback_path)
            self._load_directory(document)
            return StationsSnapshot(stations=document, source="fallback")

        self._load_directory(document)
        return StationsSnapshot(stations=document, source="remote")

    async def ensure_directory(self) -> StationDirectory:
        """Make sure the station directory is populated before it is queried.

        A list fetched from the remote source here is also written to the
        local mirror.
        """
        if not len(self._directory):
            snapshot = await self.get_stations()
            if snapshot.source == "remote":
                await self.persist_quietly(snapshot.stations)
        return self._directory

    async def refresh(self) -> bool:
        """Fetch the stations list and rewrite the local mirror.

        Never raises; failures are logged so the scheduler keeps ticking.
        """
        try:
            document = await self._client.fetch_stations()
        except Exception as exc:
            record_stations_refresh("error")
            logger.error("Stations refresh failed: %s", exc)
            if not len(self._directory):
                await self._load_directory_from_fallback()
            return False

        self._load_directory(document)
        try:
            await self.persist(document)
        except (OSError, TypeError, ValueError) as exc:
            record_stations_refresh("write_error")
            logger.error("Stations mirror write failed: %s", exc)
            return False

        record_stations_refresh("success")
        logger.debug("Stations refreshed and cached")
        return True

    async def persist(self, document: Any) -> None:
        """Write ``document`` to the local mirror, replacing the whole file."""
        await asyncio.to_thread(write_json_atomically, self.fallback_path, document)
        self._persisted_document = document

    async def persist_quietly(self, document: Any) -> None:
        """Best-effort write-through used after serving a request."""
        if document is self._persisted_document:
            return
        try:
            await self.persist(document)
        except (OSError, TypeError, ValueError) as exc:
            logger.debug("Ignoring stations mirror write failure: %s", exc)

    async def read_fallback(self) -> Any:
        document = await asyncio.to_thread(read_json, self.fallback_path)
        if not isinstance(document, list):
            raise ValueError(f"{self.fallback_path} does not contain a stations list")
        return document

    async def _load_directory_from_fallback(self) -> None:
        try:
            document = await self.read_fallback()
        except (OSError, ValueError) as exc:
            logger.warning("No usable local stations mirror: %s", exc)
            return
        self._load_directory(document)
        logger.info("Station directory loaded from local mirror")

    def _load_directory(self, document: Any) -> None:
        if document is self._loaded_document:
            return
        self._directory.load_from(document)
        self._loaded_document = document


__all__ = ["StationsMirror", "read_json", "write_json_atomically"]
