# File: tests/test_store.py
from __future__ import annotations

import json
import os
import socket

import pytest

from a11y_scout.errors import ScanStateError
from a11y_scout.report.json_report import build_report, render_json
from a11y_scout.scan.models import Scan, ScanStatus, Severity
from a11y_scout.scan import store as store_module
from a11y_scout.scan.store import ScanStore, pid_alive, process_owner

from conftest import ROOT, make_issue


def test_lifecycle_transitions():
    scan = Scan(site_url=ROOT)
    assert scan.status is ScanStatus.PENDING
    scan.start()
    assert scan.status is ScanStatus.RUNNING
    scan.complete([make_issue(ROOT, Severity.CRITICAL), make_issue(ROOT)], pages_scanned=1)

    assert scan.status is ScanStatus.COMPLETED
    assert scan.completed_at is not None
    assert scan.total_issues == scan.critical_issues + scan.warning_issues + scan.info_issues == len(scan.issues) == 2
    with pytest.raises(ScanStateError):
        scan.fail()
    with pytest.raises(ScanStateError):
        scan.start()


def test_pending_scan_cannot_complete():
    with pytest.raises(ScanStateError):
        Scan(site_url=ROOT).complete([], pages_scanned=0)


def test_failed_scan_has_no_issues():
    scan = Scan(site_url=ROOT)
    scan.start()
    scan.fail(pages_failed=3)

    assert scan.status is ScanStatus.FAILED
    assert scan.issues == []
    assert scan.total_issues == 0
    assert scan.pages_failed == 3
    with pytest.raises(ScanStateError):
        scan.complete([make_issue(ROOT)], pages_scanned=1)


def test_scan_dict_roundtrip():
    scan = Scan(site_url=ROOT)
    scan.start()
    scan.complete([make_issue(f"{ROOT}/a", Severity.INFO)], pages_scanned=1, pages_failed=1)

    restored = Scan.from_dict(json.loads(scan.json()))
    assert restored == scan


@pytest.mark.asyncio()
async def test_create_returns_running_record():
    store = ScanStore()
    scan = await store.create(ROOT)

    assert scan.status is ScanStatus.RUNNING
    assert store.get(scan.id).status is ScanStatus.RUNNING
    assert store.get("nope") is None


@pytest.mark.asyncio()
async def test_readers_get_copies():
    store = ScanStore()
    scan = await store.create(ROOT)
    copy = store.get(scan.id)
    copy.issues.append(make_issue(ROOT))
    copy.total_issues = 42

    assert store.get(scan.id).issues == []
    assert store.get(scan.id).total_issues == 0


@pytest.mark.asyncio()
async def test_terminal_state_is_absorbing():
    store = ScanStore()
    scan = await store.create(ROOT)
    await store.complete(scan.id, [make_issue(ROOT)], pages_scanned=1)

    with pytest.raises(ScanStateError):
        await store.fail(scan.id)
    record = store.get(scan.id)
    assert record.status is ScanStatus.COMPLETED
    assert record.total_issues == 1


@pytest.mark.asyncio()
async def test_unknown_scan_update():
    with pytest.raises(KeyError):
        await ScanStore().fail("missing")


@pytest.mark.asyncio()
async def test_records_survive_restart(tmp_path):
    store = ScanStore(tmp_path)
    done = await store.create(ROOT)
    await store.complete(done.id, [make_issue(ROOT, Severity.CRITICAL)], pages_scanned=1)
    orphan = await store.create(f"{ROOT}/other")
    (tmp_path / "garbage.json").write_text("{not json", encoding="utf-8")

    reopened = ScanStore(tmp_path)
    assert reopened.get(done.id).critical_issues == 1
    assert reopened.get(orphan.id).status is ScanStatus.RUNNING

    assert await reopened.reconcile_orphans() == [orphan.id]
    assert reopened.get(orphan.id).status is ScanStatus.FAILED
    assert ScanStore(tmp_path).get(orphan.id).status is ScanStatus.FAILED


@pytest.mark.asyncio()
async def test_reconcile_keeps_live_jobs():
    store = ScanStore()
    live = await store.create(ROOT)
    dead = await store.create(ROOT)

    assert await store.reconcile_orphans(keep={live.id}) == [dead.id]
    assert store.get(live.id).status is ScanStatus.RUNNING


@pytest.mark.asyncio()
async def test_list_filters_by_site():
    store = ScanStore()
    await store.create(ROOT)
    await store.create("https://other.org")

    assert [s.site_url for s in store.list(ROOT)] == [ROOT]
    assert len(store.list()) == 2


def test_json_report(tmp_path):
    scan = Scan(site_url=ROOT)
    scan.start()
    scan.complete(
        [make_issue(ROOT, Severity.CRITICAL), make_issue(f"{ROOT}/a"), make_issue(ROOT, Severity.INFO)],
        pages_scanned=2,
    )

    report = build_report(scan)
    assert report["pages"] == [
        {"url": ROOT, "total": 2, "critical": 1, "warning": 0, "info": 1},
        {"url": f"{ROOT}/a", "total": 1, "critical": 0, "warning": 1, "info": 0},
    ]

    out = render_json(scan, tmp_path / "reports" / "scan.json")
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["id"] == scan.id
    assert data["status"] == "completed"
    assert data["total_issues"] == 3


@pytest.mark.asyncio()
async def test_records_carry_their_owner(tmp_path):
    store = ScanStore(tmp_path)
    scan = await store.create(ROOT)

    assert store.owner == process_owner() == f"{socket.gethostname()}:{os.getpid()}"
    assert scan.owner == store.owner
    assert ScanStore(tmp_path).get(scan.id).owner == store.owner
    assert "owner" not in build_report(scan)


def test_pid_alive():
    assert pid_alive(os.getpid())


@pytest.mark.asyncio()
async def test_reconcile_spares_other_live_processes(tmp_path, monkeypatch):
    monkeypatch.setattr(store_module, "pid_alive", lambda pid: pid == 4242)
    live = await ScanStore(tmp_path, owner="box:4242").create(ROOT)
    dead = await ScanStore(tmp_path, owner="box:4343").create(ROOT)
    remote = await ScanStore(tmp_path, owner="elsewhere:4343").create(ROOT)
    legacy = Scan(site_url=ROOT)
    legacy.start()
    (tmp_path / f"{legacy.id}.json").write_text(legacy.json(), encoding="utf-8")

    reader = ScanStore(tmp_path, owner="box:5000")
    assert sorted(await reader.reconcile_orphans()) == sorted([dead.id, legacy.id])

    reopened = ScanStore(tmp_path)
    assert reopened.get(live.id).status is ScanStatus.RUNNING
    assert reopened.get(remote.id).status is ScanStatus.RUNNING
    assert reopened.get(dead.id).status is ScanStatus.FAILED


@pytest.mark.asyncio()
async def test_reconcile_sees_jobs_finished_by_another_process(tmp_path, monkeypatch):
    monkeypatch.setattr(store_module, "pid_alive", lambda pid: False)
    writer = ScanStore(tmp_path, owner="box:4343")
    scan = await writer.create(ROOT)
    reader = ScanStore(tmp_path, owner="box:5000")
    await writer.complete(scan.id, [make_issue(ROOT)], pages_scanned=1)

    assert await reader.reconcile_orphans() == []
    assert reader.get(scan.id).status is ScanStatus.COMPLETED
    assert ScanStore(tmp_path).get(scan.id).total_issues == 1
