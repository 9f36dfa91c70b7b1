from datetime import timedelta

from app.client import DashboardPoller, EntityCache, cache_loader
from app.client.poller import screen_interval


def test_register_arms_single_instance_job():
    poller = DashboardPoller()

    async def load():
        return None

    job = poller.register("inbound", load)
    assert job.id == "poll_inbound"
    assert job.max_instances == 1
    assert job.coalesce is True
    assert job.trigger.interval == timedelta(seconds=15)

    job = poller.register("inbound", load, seconds=5)
    assert job.trigger.interval == timedelta(seconds=5)
    assert poller.scheduler.get_job("poll_inbound") is not None


def test_unknown_screen_uses_overview_interval():
    assert screen_interval("transfers") == screen_interval("overview")
    assert screen_interval("analytics") == 30


async def test_poll_now_reports_failures():
    poller = DashboardPoller()
    calls = []

    async def ok():
        calls.append("ok")

    async def broken():
        raise RuntimeError("server down")

    poller.register("qc", ok)
    poller.register("outbound", broken)

    assert await poller.poll_now("qc") is True
    assert await poller.poll_now("outbound") is False
    assert await poller.poll_now("analytics") is False
    assert calls == ["ok"]


async def test_cache_loader_merges_fetch():
    cache = EntityCache("grn")

    async def fetch():
        return [{"id": "g1", "version": 1}, {"id": "g2", "version": 1}]

    poller = DashboardPoller()
    poller.register("inbound", cache_loader(cache, fetch))
    assert await poller.poll_now("inbound") is True
    assert len(cache) == 2


async def test_unregister_and_lifecycle():
    poller = DashboardPoller()

    async def load():
        return None

    poller.register("inventory", load)
    poller.start()
    assert poller.scheduler.running

    poller.unregister("inventory")
    assert poller.scheduler.get_job("poll_inventory") is None
    assert await poller.poll_now("inventory") is False

    poller.unregister("inventory")
    poller.shutdown()
    assert not poller.scheduler.running
