import asyncio
import gc
import json
import weakref
from typing import Dict, List

import httpx
import pytest

from registrar.modules.eureka import ApiVersion, EurekaClient, Instance, InstanceStatus

SERVER = "http://10.250.100.71:8761/eureka/"
INSTANCE = Instance(app="nit-ts-app-server", ip_addr="10.250.100.71", status=InstanceStatus.UP, port=9527)
INSTANCE_URL = "http://10.250.100.71:8761/eureka/apps/NIT-TS-APP-SERVER/10.250.100.71:nit-ts-app-server:9527"


class FakeHandle:
    def __init__(self, interval, callback) -> None:
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def tick(self) -> None:
        if not self.cancelled:
            self.callback()


class FakeScheduler:
    def __init__(self) -> None:
        self.handles: List[FakeHandle] = []

    def schedule(self, interval, callback, *, name=None) -> FakeHandle:
        handle = FakeHandle(interval, callback)
        self.handles.append(handle)
        return handle


class FakeRegistry:
    """Records requests and answers with a per-method status code."""

    def __init__(self, **codes: int) -> None:
        self.codes: Dict[str, int] = {"POST": 204, "PUT": 200, "DELETE": 200}
        self.codes.update({method.upper(): code for method, code in codes.items()})
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.codes[request.method])

    def methods(self) -> List[str]:
        return [request.method for request in self.requests]


def _client(registry, scheduler=None, **kwargs) -> EurekaClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(registry))
    return EurekaClient(SERVER, client=http, scheduler=scheduler or FakeScheduler(), **kwargs)


async def _settle() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


def test_register_success_starts_heartbeat():
    registry = FakeRegistry()
    scheduler = FakeScheduler()

    async def scenario():
        client = _client(registry, scheduler)
        ok = await client.register(INSTANCE)
        await _settle()
        return client, ok

    client, ok = asyncio.run(scenario())

    assert ok is True
    assert client.is_registered
    assert client.instance == INSTANCE
    assert len(scheduler.handles) == 1
    assert scheduler.handles[0].interval == 60.0
    assert registry.methods() == ["POST", "PUT"]

    post, heartbeat = registry.requests
    assert str(post.url) == "http://10.250.100.71:8761/eureka/apps/NIT-TS-APP-SERVER"
    assert post.headers["content-type"] == "application/json"
    assert json.loads(post.content) == INSTANCE.to_dict()
    assert str(heartbeat.url) == INSTANCE_URL


def test_register_while_active_is_noop():
    registry = FakeRegistry()
    scheduler = FakeScheduler()
    other = Instance(app="other-app", ip_addr="10.0.0.1", status="up", port=80)

    async def scenario():
        client = _client(registry, scheduler)
        await client.register(INSTANCE)
        await _settle()
        sent = len(registry.requests)
        again = await client.register(INSTANCE)
        different = await client.register(other)
        await _settle()
        return client, sent, again, different

    client, sent, again, different = asyncio.run(scenario())

    assert again is True
    assert different is True
    assert len(registry.requests) == sent
    assert client.instance == INSTANCE
    assert len(scheduler.handles) == 1


@pytest.mark.parametrize("code", [200, 400, 500])
def test_register_non_204_stays_idle(code):
    registry = FakeRegistry(post=code)
    scheduler = FakeScheduler()

    async def scenario():
        client = _client(registry, scheduler)
        return client, await client.register(INSTANCE)

    client, ok = asyncio.run(scenario())

    assert ok is False
    assert not client.is_registered
    assert client.instance is None
    assert scheduler.handles == []
    assert registry.methods() == ["POST"]


def test_register_transport_failure_returns_false():
    scheduler = FakeScheduler()

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async def scenario():
        client = _client(handler, scheduler)
        return client, await client.register(INSTANCE)

    client, ok = asyncio.run(scenario())

    assert ok is False
    assert not client.is_registered
    assert scheduler.handles == []


def test_register_can_retry_after_failure():
    registry = FakeRegistry(post=500)

    async def scenario():
        client = _client(registry)
        first = await client.register(INSTANCE)
        registry.codes["POST"] = 204
        second = await client.register(INSTANCE)
        return client, first, second

    client, first, second = asyncio.run(scenario())

    assert (first, second) == (False, True)
    assert client.is_registered


def test_deregister_while_idle_is_noop():
    registry = FakeRegistry()

    async def scenario():
        return await _client(registry).deregister()

    assert asyncio.run(scenario()) is True
    assert registry.requests == []


def test_deregister_success_returns_to_idle():
    registry = FakeRegistry()
    scheduler = FakeScheduler()

    async def scenario():
        client = _client(registry, scheduler)
        await client.register(INSTANCE)
        await _settle()
        ok = await client.deregister()
        handle = scheduler.handles[0]
        handle.callback()
        await _settle()
        return client, ok, handle

    client, ok, handle = asyncio.run(scenario())

    assert ok is True
    assert not client.is_registered
    assert handle.cancelled
    assert registry.methods() == ["POST", "PUT", "DELETE"]
    assert str(registry.requests[-1].url) == INSTANCE_URL


@pytest.mark.parametrize("code", [204, 404, 500])
def test_deregister_failure_stays_active(code):
    registry = FakeRegistry(delete=code)
    scheduler = FakeScheduler()

    async def scenario():
        client = _client(registry, scheduler)
        await client.register(INSTANCE)
        ok = await client.deregister()
        scheduler.handles[0].tick()
        await _settle()
        return client, ok

    client, ok = asyncio.run(scenario())

    assert ok is False
    assert client.is_registered
    assert client.instance == INSTANCE
    assert not scheduler.handles[0].cancelled
    assert registry.methods()[-1] == "PUT"


def test_deregister_transport_failure_stays_active():
    registry = FakeRegistry()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            raise httpx.ConnectTimeout("timeout", request=request)
        return registry(request)

    async def scenario():
        client = _client(handler)
        await client.register(INSTANCE)
        return client, await client.deregister()

    client, ok = asyncio.run(scenario())

    assert ok is False
    assert client.is_registered


def test_cycle_idle_active_idle_active():
    registry = FakeRegistry()
    scheduler = FakeScheduler()

    async def scenario():
        client = _client(registry, scheduler)
        results = [
            await client.register(INSTANCE),
            await client.deregister(),
            await client.register(INSTANCE),
        ]
        await _settle()
        return client, results

    client, results = asyncio.run(scenario())

    assert results == [True, True, True]
    assert client.is_registered
    assert [handle.cancelled for handle in scheduler.handles] == [True, False]


@pytest.mark.parametrize(
    "failure",
    [500, httpx.ConnectError("connection refused"), RuntimeError("client has been closed")],
    ids=["status-500", "transport-error", "unexpected-error"],
)
def test_heartbeat_failures_are_swallowed(failure, caplog):
    registry = FakeRegistry()
    scheduler = FakeScheduler()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method != "PUT":
            return registry(request)
        registry.requests.append(request)
        if isinstance(failure, Exception):
            raise failure
        return httpx.Response(failure)

    async def scenario():
        client = _client(handler, scheduler)
        await client.register(INSTANCE)
        await _settle()
        scheduler.handles[0].tick()
        await _settle()
        scheduler.handles[0].tick()
        await _settle()
        return client, client._heartbeat_task

    client, last_heartbeat = asyncio.run(scenario())

    assert registry.methods() == ["POST", "PUT", "PUT", "PUT"]
    assert client.is_registered
    assert not scheduler.handles[0].cancelled
    assert last_heartbeat.done() and last_heartbeat.exception() is None
    if isinstance(failure, RuntimeError):
        assert "heartbeat nit-ts-app-server on" in caplog.text


def test_discarded_client_stops_heartbeating():
    registry = FakeRegistry()

    async def scenario():
        http = httpx.AsyncClient(transport=httpx.MockTransport(registry))
        client = EurekaClient(SERVER, client=http, heartbeat_interval=0.01)
        await client.register(INSTANCE)
        await asyncio.sleep(0.025)
        alive = weakref.ref(client)
        del client
        gc.collect()
        await _settle()
        gc.collect()
        discarded_at = len(registry.requests)
        await asyncio.sleep(0.05)
        return alive, discarded_at

    alive, discarded_at = asyncio.run(scenario())

    assert alive() is None
    assert registry.methods().count("PUT") >= 1
    assert len(registry.requests) == discarded_at


@pytest.mark.parametrize(
    "app, encoded",
    [("orders#v2", "ORDERS%23V2"), ("orders?v2", "ORDERS%3FV2"), ("demo%zz", "DEMO%25ZZ")],
)
def test_register_escapes_reserved_characters(app, encoded):
    registry = FakeRegistry()
    instance = Instance(app=app, ip_addr="10.0.0.1", status="up", port=80)

    async def scenario():
        client = _client(registry)
        ok = await client.register(instance)
        await _settle()
        return ok

    assert asyncio.run(scenario()) is True
    post, heartbeat = registry.requests
    assert post.url.raw_path == f"/eureka/apps/{encoded}".encode()
    assert heartbeat.url.raw_path.startswith(f"/eureka/apps/{encoded}/10.0.0.1:".encode())


def test_new_heartbeat_cancels_in_flight_one():
    scheduler = FakeScheduler()
    release = {}
    puts = []

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(204)
        puts.append(request)
        if len(puts) == 1:
            release["first"] = asyncio.Event()
            await release["first"].wait()
        return httpx.Response(200)

    async def scenario():
        client = _client(handler, scheduler)
        await client.register(INSTANCE)
        await _settle()
        first = client._heartbeat_task
        scheduler.handles[0].tick()
        await _settle()
        return first, client._heartbeat_task

    first, second = asyncio.run(scenario())

    assert len(puts) == 2
    assert first.cancelled()
    assert second.done() and not second.cancelled()


def test_heartbeat_runs_on_real_scheduler_until_deregistered():
    registry = FakeRegistry()

    async def scenario():
        http = httpx.AsyncClient(transport=httpx.MockTransport(registry))
        client = EurekaClient(SERVER, client=http, heartbeat_interval=0.01)
        await client.register(INSTANCE)
        await asyncio.sleep(0.06)
        await client.deregister()
        after_deregister = len(registry.requests)
        await asyncio.sleep(0.05)
        await client.aclose()
        return after_deregister

    after_deregister = asyncio.run(scenario())

    methods = registry.methods()
    assert methods[0] == "POST"
    assert methods.count("PUT") >= 2
    assert methods[-1] == "DELETE"
    assert len(registry.requests) == after_deregister


def test_aclose_stops_heartbeat_without_deregistering():
    registry = FakeRegistry()
    scheduler = FakeScheduler()

    async def scenario():
        async with _client(registry, scheduler) as client:
            await client.register(INSTANCE)
            await _settle()
        return client

    client = asyncio.run(scenario())

    assert not client.is_registered
    assert scheduler.handles[0].cancelled
    assert "DELETE" not in registry.methods()


def test_api_version_v2_paths():
    registry = FakeRegistry()

    async def scenario():
        client = _client(registry, api_version=ApiVersion.V2)
        await client.register(INSTANCE)
        await _settle()
        await client.deregister()

    asyncio.run(scenario())

    assert [str(request.url) for request in registry.requests] == [
        "http://10.250.100.71:8761/eureka/v2/apps/NIT-TS-APP-SERVER",
        INSTANCE_URL.replace("/eureka/", "/eureka/v2/"),
        INSTANCE_URL.replace("/eureka/", "/eureka/v2/"),
    ]


def test_from_urls_builds_one_client_per_server():
    clients = EurekaClient.from_urls(
        "http://127.0.0.1:8088/eureka/, http://127.0.0.2:8088/eureka/,,http://127.0.0.3:8088/eureka/",
        api_version=ApiVersion.V2,
        log_enabled=True,
    )

    assert [client.server_address for client in clients] == [
        "http://127.0.0.1:8088/eureka/",
        "http://127.0.0.2:8088/eureka/",
        "http://127.0.0.3:8088/eureka/",
    ]
    assert all(client.api_version is ApiVersion.V2 and client.log_enabled for client in clients)


def test_malformed_server_address_fails_fast():
    with pytest.raises(ValueError):
        EurekaClient("127.0.0.1")


def test_non_positive_heartbeat_interval_rejected():
    with pytest.raises(ValueError):
        EurekaClient(SERVER, heartbeat_interval=0)


def test_from_urls_skips_repeated_servers():
    clients = EurekaClient.from_urls("http://a:8761/eureka/,http://b:8761/eureka/, http://a:8761/eureka/")

    assert [client.server_address for client in clients] == ["http://a:8761/eureka/", "http://b:8761/eureka/"]
