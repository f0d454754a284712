# a11y_scout/scan/store.py
"""
Scan persistence sink.

Records live in memory and, when a directory is configured, are mirrored
to ``<store_dir>/<scan_id>.json`` so they survive a restart. Writes to one
record are serialized by a per-record :class:`asyncio.Lock`; readers always
get a copy, never the live object.
"""
from __future__ import annotations

import asyncio
import json
import os
import socket
from pathlib import Path
from typing import Callable, Container, Dict, List, Optional, Tuple

from a11y_scout.logger import logger
from a11y_scout.scan.models import Issue, Scan


def process_owner() -> str:
    return f"{socket.gethostname()}:{os.getpid()}"


def split_owner(owner: str) -> Tuple[str, Optional[int]]:
    host, _, pid = owner.rpartition(":")
    try:
        return host, int(pid)
    except ValueError:
        return owner, None


def pid_alive(pid: int) -> bool:
    """Whether a process with *pid* exists on this host."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # exists, owned by another user
        return True
    return True


class ScanStore:
    """Keeps scan records; the only state shared between concurrent scan jobs."""

    def __init__(self, directory: Optional[Path] = None, owner: Optional[str] = None) -> None:
        self.directory = Path(directory) if directory is not None else None
        self.owner = owner or process_owner()
        self._scans: Dict[str, Scan] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        if self.directory is not None:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._load_all()

    # -- reads -------------------------------------------------------------
    def get(self, scan_id: str) -> Optional[Scan]:
        scan = self._scans.get(scan_id)
        return scan.copy() if scan is not None else None

    def list(self, site_url: Optional[str] = None) -> List[Scan]:
        """Copies of all records, newest first."""
        scans = [s for s in self._scans.values() if site_url is None or s.site_url == site_url]
        return [s.copy() for s in sorted(scans, key=lambda s: s.started_at, reverse=True)]

    # -- writes ------------------------------------------------------------
    async def create(self, site_url: str) -> Scan:
        """New record, already moved to ``running``."""
        scan = Scan(site_url=site_url, owner=self.owner)
        scan.start()
        self._scans[scan.id] = scan
        self._locks[scan.id] = asyncio.Lock()
        async with self._locks[scan.id]:
            self._persist(scan)
        logger.debug("Scan %s created for %s", scan.id, site_url)
        return scan.copy()

    async def complete(self, scan_id: str, issues: List[Issue], pages_scanned: int, pages_failed: int = 0) -> Scan:
        return await self._update(scan_id, lambda s: s.complete(issues, pages_scanned, pages_failed))

    async def fail(self, scan_id: str, pages_failed: int = 0) -> Scan:
        return await self._update(scan_id, lambda s: s.fail(pages_failed))

    async def reconcile_orphans(self, keep: Container[str] = ()) -> List[str]:
        """Mark records left ``pending``/``running`` by a dead process as failed.

        Ids in *keep* belong to jobs that are still alive and are left alone, as
        are records owned by another live process sharing the directory. Records
        owned by a different host cannot be checked and are never touched.
        """
        orphaned: List[str] = []
        for scan_id, scan in list(self._scans.items()):
            if scan_id in keep:
                continue
            # another process may have finished the job since it was loaded
            scan = self._reload(scan_id) or scan
            if scan.status.is_terminal or not self._abandoned(scan):
                continue
            await self.fail(scan_id)
            orphaned.append(scan_id)
        if orphaned:
            logger.warning("Marked %d orphaned scan(s) as failed", len(orphaned))
        return orphaned

    def _abandoned(self, scan: Scan) -> bool:
        if scan.owner is None or scan.owner == self.owner:
            return True
        host, pid = split_owner(scan.owner)
        if host != split_owner(self.owner)[0]:
            return False
        return pid is None or not pid_alive(pid)

    async def _update(self, scan_id: str, mutate: Callable[[Scan], None]) -> Scan:
        if scan_id not in self._scans:
            raise KeyError(scan_id)
        async with self._locks[scan_id]:
            scan = self._scans[scan_id]
            # mutate a copy so a rejected transition leaves the record intact
            updated = scan.copy()
            mutate(updated)
            self._scans[scan_id] = updated
            self._persist(updated)
            return updated.copy()

    # -- file mirror -------------------------------------------------------
    def _path(self, scan_id: str) -> Path:
        assert self.directory is not None
        return self.directory / f"{scan_id}.json"

    def _persist(self, scan: Scan) -> None:
        if self.directory is None:
            return
        target = self._path(scan.id)
        tmp = target.with_suffix(".json.tmp")
        tmp.write_text(scan.json(), encoding="utf-8")
        tmp.replace(target)

    def _reload(self, scan_id: str) -> Optional[Scan]:
        if self.directory is None or not self._path(scan_id).exists():
            return None
        try:
            scan = Scan.from_dict(json.loads(self._path(scan_id).read_text(encoding="utf-8")))
        except (ValueError, KeyError, TypeError):
            return None
        self._scans[scan_id] = scan
        return scan

    def _load_all(self) -> None:
        assert self.directory is not None
        for path in sorted(self.directory.glob("*.json")):
            try:
                scan = Scan.from_dict(json.loads(path.read_text(encoding="utf-8")))
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Ignoring unreadable scan record %s: %s", path, exc)
                continue
            self._scans[scan.id] = scan
            self._locks[scan.id] = asyncio.Lock()
        logger.debug("Loaded %d scan record(s) from %s", len(self._scans), self.directory)


__all__ = ["ScanStore", "pid_alive", "process_owner"]
