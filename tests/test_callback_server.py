# Tests for loopback_oauth/callback_server.py

import asyncio
import socket

import aiohttp
import pytest

from conftest import can_bind
from loopback_oauth import LoopbackListener, PortUnavailableError, RedirectError, load_trampoline_page


async def fetch(url, **kwargs):
    async with aiohttp.ClientSession() as session:
        async with session.get(url, **kwargs) as resp:
            return resp.status, await resp.text()


class TestLoopbackListener:
    async def test_start_and_stop_release_port(self, free_port):
        listener = LoopbackListener("127.0.0.1", free_port)
        await listener.start()
        assert listener.is_running
        assert not can_bind(free_port)

        await listener.stop()
        assert not listener.is_running
        assert can_bind(free_port)

    async def test_context_manager(self, free_port):
        async with LoopbackListener("127.0.0.1", free_port) as listener:
            assert listener.is_running
        assert can_bind(free_port)

    async def test_stop_is_idempotent(self, free_port):
        listener = LoopbackListener("127.0.0.1", free_port)
        await listener.start()
        await listener.stop()
        await listener.stop()

    async def test_port_in_use(self, free_port):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", free_port))
            blocker.listen(1)

            listener = LoopbackListener("127.0.0.1", free_port)
            with pytest.raises(PortUnavailableError) as exc_info:
                await listener.start()

        assert exc_info.value.port == free_port
        assert not listener.is_running

    async def test_wait_for_path_ignores_other_paths(self, free_port):
        async with LoopbackListener("127.0.0.1", free_port) as listener:
            base = f"http://127.0.0.1:{free_port}"
            favicon = asyncio.create_task(fetch(f"{base}/favicon.ico"))
            await asyncio.sleep(0.05)
            redirect = asyncio.create_task(fetch(f"{base}/authorize", params={"code": "XYZ"}))

            incoming = await listener.wait_for_path("/authorize", timeout=5)
            assert incoming.path == "/authorize"
            assert incoming.query == {"code": "XYZ"}
            incoming.respond_html("<p>ok</p>")

            favicon_status, _ = await favicon
            assert favicon_status == 404
            status, body = await redirect
            assert status == 200
            assert body == "<p>ok</p>"

    async def test_wait_for_path_timeout(self, free_port):
        async with LoopbackListener("127.0.0.1", free_port) as listener:
            with pytest.raises(RedirectError):
                await listener.wait_for_path("/authorize", timeout=0.1)

    async def test_stop_releases_queued_requests(self, free_port):
        listener = LoopbackListener("127.0.0.1", free_port)
        await listener.start()

        pending = asyncio.create_task(fetch(f"http://127.0.0.1:{free_port}/authorize"))
        # Let the request reach the queue
        for _ in range(50):
            if not listener._requests.empty():
                break
            await asyncio.sleep(0.01)

        await listener.stop()
        status, _ = await pending
        assert status == 503


class TestTrampolinePage:
    def test_bundled_page_forwards_fragment(self):
        page = load_trampoline_page()
        assert "/token?url_with_fragment=" in page
        assert "window.location.href" in page

    def test_override_path(self, tmp_path):
        custom = tmp_path / "index.html"
        custom.write_text("<html>custom</html>", encoding="utf-8")
        assert load_trampoline_page(str(custom)) == "<html>custom</html>"
