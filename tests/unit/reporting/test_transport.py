"""
Tests for the shared JSON-RPC line framing in client/transport/base.py.
"""

import asyncio
import json

import pytest

from client.transport import LineTransport, NamedPipeTransport, UnixSocketTransport


class LoopbackTransport(LineTransport):
    """Answers every request on the next loop iteration, like a fast daemon."""

    name = "loopback"

    def __init__(self, reply=True):
        super().__init__()
        self.reply = reply
        self.sent = []

    async def _send(self, data):
        req = json.loads(data.decode())
        self.sent.append(req)
        if self.reply:
            resp = {"jsonrpc": "2.0", "id": req["id"], "result": {"status": "success", "data": {"method": req["method"]}}}
            asyncio.get_running_loop().call_soon(self._dispatch, (json.dumps(resp) + "\n").encode())

    async def close(self):
        self._fail_pending("closed")


@pytest.mark.asyncio
async def test_request_frames_json_rpc_and_matches_reply():
    transport = LoopbackTransport()
    resp = await transport.request("version.info", timeout=1.0)

    assert transport.sent == [{"jsonrpc": "2.0", "id": 1, "method": "version.info", "params": {}}]
    assert resp["result"]["data"] == {"method": "version.info"}
    assert transport._futures == {}


@pytest.mark.asyncio
async def test_request_ids_increase():
    transport = LoopbackTransport()
    await transport.request("ping", timeout=1.0)
    await transport.request("settings.get", timeout=1.0)
    assert [req["id"] for req in transport.sent] == [1, 2]


@pytest.mark.asyncio
async def test_request_times_out_without_reply():
    transport = LoopbackTransport(reply=False)
    with pytest.raises(asyncio.TimeoutError):
        await transport.request("version.current", timeout=0.05)
    assert transport._futures == {}


@pytest.mark.asyncio
async def test_pending_requests_fail_when_channel_closes():
    transport = LoopbackTransport(reply=False)
    pending = asyncio.ensure_future(transport.request("version.current", timeout=1.0))
    await asyncio.sleep(0)
    await transport.close()
    with pytest.raises(ConnectionError):
        await pending


@pytest.mark.asyncio
async def test_malformed_and_unknown_lines_are_ignored():
    transport = LoopbackTransport(reply=False)
    pending = asyncio.ensure_future(transport.request("ping", timeout=1.0))
    await asyncio.sleep(0)

    transport._dispatch(b"not json\n")
    transport._dispatch(b"[1, 2]\n")
    transport._dispatch(b'{"jsonrpc": "2.0", "id": 99, "result": {}}\n')
    assert not pending.done()

    transport._dispatch(b'{"jsonrpc": "2.0", "id": 1, "result": {"status": "success"}}\n')
    assert (await pending)["id"] == 1


@pytest.mark.asyncio
async def test_socket_transport_missing_socket(tmp_path):
    transport = UnixSocketTransport(tmp_path / "absent.sock")
    with pytest.raises(ConnectionError):
        await transport.connect(timeout=0.1)


@pytest.mark.asyncio
async def test_named_pipe_requires_pywin32(monkeypatch):
    monkeypatch.setattr("client.transport.namedpipe_transport.win32pipe", None)
    with pytest.raises(ConnectionError):
        await NamedPipeTransport().connect(timeout=0.1)


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_id", ["[1]", '{"n": 1}', '"1"', "true"])
async def test_reply_with_non_integer_id_is_ignored(bad_id):
    transport = LoopbackTransport(reply=False)
    pending = asyncio.ensure_future(transport.request("ping", timeout=1.0))
    await asyncio.sleep(0)

    transport._dispatch(f'{{"jsonrpc": "2.0", "id": {bad_id}, "result": {{}}}}\n'.encode())
    assert not pending.done()

    transport._dispatch(b'{"jsonrpc": "2.0", "id": 1, "result": {"status": "success"}}\n')
    assert (await pending)["id"] == 1
