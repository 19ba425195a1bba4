"""
Unit tests for DaemonClient transport selection and response handling.
"""

import asyncio

import pytest
import pytest_asyncio

from client.daemon_client import DaemonClient
from client.errors import DaemonRequestError


class FakeTransport:
    """Scripted transport: answers each method from a dict of responses."""

    def __init__(self, name="fake", responses=None, connect_error=None):
        self.name = name
        self.responses = responses if responses is not None else {}
        self.connect_error = connect_error
        self.connected = False
        self.closed = False
        self.requests = []

    async def connect(self, timeout=1.0):
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    async def request(self, method, params=None, timeout=5.0):
        self.requests.append((method, params, timeout))
        answer = self.responses.get(method)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    async def close(self):
        self.closed = True


PING_OK = {"jsonrpc": "2.0", "id": 1, "result": {"status": "success", "data": {"pong": True}}}


def _ok(data):
    return {"jsonrpc": "2.0", "id": 2, "result": {"status": "success", "data": data}}


class TestConnect:
    @pytest.mark.asyncio
    async def test_connects_with_first_working_transport(self):
        transport = FakeTransport(responses={"ping": PING_OK})
        client = DaemonClient(transports=[transport], connect_timeout=0.5)

        await client.connect()

        assert client.connected
        assert client.transport is transport
        assert transport.requests[0][0] == "ping"

    @pytest.mark.asyncio
    async def test_falls_back_when_transport_unavailable(self):
        broken = FakeTransport("pipe", connect_error=ConnectionError("pywin32 not available"))
        working = FakeTransport("stdio", responses={"ping": PING_OK})
        client = DaemonClient(transports=[broken, working])

        await client.connect()

        assert client.transport is working
        assert broken.closed

    @pytest.mark.asyncio
    async def test_bad_ping_is_treated_as_unavailable(self):
        silent = FakeTransport("socket", responses={"ping": {"jsonrpc": "2.0", "id": 1, "error": {"code": "E_X"}}})
        client = DaemonClient(transports=[silent])

        with pytest.raises(ConnectionError):
            await client.connect()
        assert not client.connected

    @pytest.mark.asyncio
    async def test_all_transports_failing_chains_last_error(self):
        last = asyncio.TimeoutError()
        client = DaemonClient(transports=[
            FakeTransport(connect_error=ConnectionError("no pipe")),
            FakeTransport(responses={"ping": last}),
        ])

        with pytest.raises(ConnectionError) as excinfo:
            await client.connect()
        assert str(excinfo.value) == "No daemon transport available"
        assert excinfo.value.__cause__ is last

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            DaemonClient(mode="carrier-pigeon")

    @pytest.mark.asyncio
    async def test_async_context_manager_closes(self):
        transport = FakeTransport(responses={"ping": PING_OK})
        async with DaemonClient(transports=[transport]) as client:
            assert client.connected
        assert transport.closed
        assert not client.connected


class TestCall:
    @pytest_asyncio.fixture
    async def client(self):
        transport = FakeTransport(responses={"ping": PING_OK})
        client = DaemonClient(transports=[transport], rpc_timeout=2.5)
        await client.connect()
        return client

    @pytest.mark.asyncio
    async def test_returns_data(self, client):
        client.transport.responses["version.current"] = _ok({"version": "2024.1"})
        assert await client.call("version.current") == {"version": "2024.1"}
        assert client.transport.requests[-1] == ("version.current", {}, 2.5)

    @pytest.mark.asyncio
    async def test_error_member_raises(self, client):
        client.transport.responses["version.info"] = {
            "jsonrpc": "2.0", "id": 3, "error": {"code": "E_STATE", "message": "unreadable"},
        }
        with pytest.raises(DaemonRequestError) as excinfo:
            await client.call("version.info")
        assert excinfo.value.code == "E_STATE"
        assert excinfo.value.message == "unreadable"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("resp", [
        {"jsonrpc": "2.0", "id": 3},
        {"jsonrpc": "2.0", "id": 3, "result": {"status": "error"}},
        {"jsonrpc": "2.0", "id": 3, "result": {"status": "success", "data": "2024.1"}},
    ])
    async def test_malformed_response_raises(self, client, resp):
        client.transport.responses["settings.get"] = resp
        with pytest.raises(DaemonRequestError) as excinfo:
            await client.call("settings.get")
        assert excinfo.value.code == "E_BAD_RESPONSE"

    @pytest.mark.asyncio
    async def test_request_requires_connection(self):
        client = DaemonClient(transports=[])
        with pytest.raises(ConnectionError):
            await client.request("version.current")
