import pytest

from app.client import ActionRunner, ComplianceChecklist, EntityCache
from app.core.exceptions import ConflictError, NetworkError


def _grn(grn_id, version, status="pending"):
    return {"id": grn_id, "version": version, "status": status}


def test_poll_keeps_newer_local_copy():
    cache = EntityCache("grn")
    cache.apply_poll([_grn("g1", 3, "in-progress")])

    applied = cache.apply_poll([_grn("g1", 2, "pending")])
    assert applied == 0
    assert cache.get("g1")["status"] == "in-progress"

    cache.apply_poll([_grn("g1", 4, "completed")])
    assert cache.get("g1")["status"] == "completed"


def test_poll_drops_missing_records():
    cache = EntityCache("grn")
    cache.apply_poll([_grn("g1", 1), _grn("g2", 1)])
    cache.apply_poll([_grn("g2", 1)])
    assert "g1" not in cache
    assert len(cache) == 1


def test_unversioned_records_always_replace():
    cache = EntityCache("dock")
    cache.apply_poll([{"id": "d1", "status": "empty"}])
    cache.apply_poll([{"id": "d1", "status": "active"}])
    assert cache.get("d1")["status"] == "active"


def test_pending_write_is_not_overwritten_by_poll():
    cache = EntityCache("grn")
    cache.apply_poll([_grn("g1", 1)])
    cache.begin_write("g1")
    cache.put_local(_grn("g1", 1, "in-progress"))

    cache.apply_poll([_grn("g2", 1)])
    assert cache.get("g1")["status"] == "in-progress"
    assert cache.is_pending("g1")

    cache.confirm_write("g1", _grn("g1", 2, "in-progress"))
    assert not cache.is_pending("g1")
    assert cache.get("g1")["version"] == 2


async def test_write_applies_confirmed_record():
    cache = EntityCache("grn")
    cache.apply_poll([_grn("g1", 1)])

    async def start():
        assert cache.is_pending("g1")
        return _grn("g1", 2, "in-progress")

    record = await cache.write("g1", start)
    assert record["status"] == "in-progress"
    assert cache.get("g1")["version"] == 2
    assert cache.pending == set()


async def test_failed_write_releases_and_reraises():
    cache = EntityCache("grn")
    cache.apply_poll([_grn("g1", 1)])

    async def stale():
        raise ConflictError("stale")

    with pytest.raises(ConflictError):
        await cache.write("g1", stale)
    assert not cache.is_pending("g1")
    assert cache.get("g1")["version"] == 1


async def test_create_merges_new_record():
    cache = EntityCache("grn")

    async def create():
        return _grn("g9", 1)

    await cache.write(None, create)
    assert "g9" in cache


class FlakyComplianceApi:
    def __init__(self, failures):
        self.failures = failures
        self.server = {"c1": {"id": "c1", "title": "Fire exits", "completed": False, "version": 1}}

    async def toggle_check(self, check_id, completed):
        if self.failures:
            self.failures -= 1
            raise NetworkError("server unreachable")
        check = self.server[check_id]
        check.update(completed=completed, version=check["version"] + 1)
        return dict(check)

    async def list_compliance_checks(self):
        return [dict(c) for c in self.server.values()]


async def test_compliance_toggle_syncs_on_refresh():
    api = FlakyComplianceApi(failures=1)
    checklist = ComplianceChecklist(api)
    await checklist.refresh()

    assert await checklist.toggle("c1", True) is False
    assert checklist.items()[0]["completed"] is True
    assert checklist.unsynced == {"c1": True}

    await checklist.refresh()
    assert checklist.unsynced == {}
    assert api.server["c1"]["completed"] is True
    assert checklist.items()[0]["version"] == 2


async def test_compliance_toggle_confirmed():
    api = FlakyComplianceApi(failures=0)
    checklist = ComplianceChecklist(api)
    await checklist.refresh()

    assert await checklist.toggle("c1", True) is True
    assert checklist.cache.get("c1")["version"] == 2
    assert not checklist.cache.is_pending("c1")


async def test_action_runner_notifies_on_failure():
    reloads = []

    async def reload():
        reloads.append(True)

    runner = ActionRunner(reload=reload)

    async def conflict():
        raise ConflictError("stale")

    assert await runner.run("Start GRN", conflict) is None
    assert reloads == []

    async def ok():
        return {"id": "g1"}

    assert await runner.run("Complete GRN", ok) == {"id": "g1"}
    assert reloads == [True]

    async def broken():
        raise RuntimeError("bug")

    await runner.run("Export", broken)

    notifications = runner.drain()
    assert [n.message for n in notifications] == [
        "Start GRN failed: the record was changed by someone else, reload and retry",
        "Export failed: unexpected error",
    ]
    assert notifications[0].kind == "Conflict"
    assert runner.drain() == []
