"""
Loopback HTTP listener for the OAuth redirects

Incoming requests are queued; the flow pulls them one at a time with
``wait_for_path`` and answers the one it is waiting for. Requests for any
other path (favicon and the like) are answered 404 and otherwise ignored.
"""
import asyncio
import logging
from importlib import resources
from pathlib import Path
from typing import Dict, Optional

from aiohttp import web

from settings import TRAMPOLINE_PAGE
from .constants import LOOPBACK_HOST, LOOPBACK_PORT
from .errors import PortUnavailableError, RedirectError

logger = logging.getLogger(__name__)


COMPLETE_PAGE = """
<html>
    <body>
        <h1>Authorization complete</h1>
        <p>You can now close this window and return to the terminal.</p>
    </body>
</html>
"""


def load_trampoline_page(page_path: Optional[str] = None) -> str:
    """
    Read the HTML page served for the provider redirect.

    Its script forwards the full redirect URL, fragment included, to the
    token endpoint as a query parameter.

    Args:
        page_path: Override path; defaults to the TRAMPOLINE_PAGE setting,
                   then to the page bundled with this package

    Returns:
        Page HTML
    """
    page_path = page_path or TRAMPOLINE_PAGE
    if page_path:
        return Path(page_path).read_text(encoding="utf-8")
    return resources.files(__package__).joinpath("static", "index.html").read_text(encoding="utf-8")


class IncomingRequest:
    """A request held open until the flow decides how to answer it"""

    def __init__(self, path: str, query: Dict[str, str]):
        self.path = path
        self.query = query
        self._response: asyncio.Future = asyncio.get_running_loop().create_future()

    def respond(self, response: web.StreamResponse) -> None:
        """Release the request with the given response"""
        if not self._response.done():
            self._response.set_result(response)

    def respond_html(self, html: str, status: int = 200) -> None:
        self.respond(web.Response(text=html, content_type="text/html", status=status))

    def reject(self, status: int = 404) -> None:
        self.respond(web.Response(status=status))

    async def response(self) -> web.StreamResponse:
        return await self._response


class LoopbackListener:
    """Local HTTP listener bound to a fixed loopback address"""

    def __init__(self, host: str = LOOPBACK_HOST, port: int = LOOPBACK_PORT):
        self.host = host
        self.port = port
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self._requests: "asyncio.Queue[IncomingRequest]" = asyncio.Queue()

        # Every path lands in the queue; filtering happens in wait_for_path
        self.app.router.add_route("*", "/{tail:.*}", self._handle_request)

    @property
    def is_running(self) -> bool:
        return self.runner is not None

    async def _handle_request(self, request: web.Request) -> web.StreamResponse:
        """Queue the request and hold it until the flow answers"""
        incoming = IncomingRequest(request.path, dict(request.query))
        logger.debug(f"Listener received {request.method} {request.path}")
        await self._requests.put(incoming)
        return await incoming.response()

    async def start(self) -> None:
        """
        Bind and start listening.

        Raises:
            PortUnavailableError: If the host/port cannot be bound
        """
        runner = web.AppRunner(self.app, access_log=None)
        await runner.setup()

        site = web.TCPSite(runner, host=self.host, port=self.port)
        try:
            await site.start()
        except OSError as e:
            await runner.cleanup()
            raise PortUnavailableError(self.host, self.port, e) from e

        self.runner = runner
        logger.info(f"Loopback listener started on http://{self.host}:{self.port}")

    async def wait_for_path(self, path: str, timeout: Optional[float] = None) -> IncomingRequest:
        """
        Wait for a request to ``path``, draining requests to any other path.

        The returned request is still open; the caller must answer it.

        Args:
            path: Absolute URL path to wait for
            timeout: Seconds to wait in total; None waits forever

        Returns:
            The matching IncomingRequest

        Raises:
            RedirectError: If the timeout expires first
        """
        try:
            return await asyncio.wait_for(self._next_matching(path), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise RedirectError(f"No request to {path} within {timeout} seconds") from e

    async def _next_matching(self, path: str) -> IncomingRequest:
        while True:
            incoming = await self._requests.get()
            if incoming.path == path:
                return incoming
            logger.debug(f"Ignoring request to {incoming.path} while waiting for {path}")
            incoming.reject(404)

    async def stop(self) -> None:
        """Release queued requests and close the listening socket"""
        while not self._requests.empty():
            self._requests.get_nowait().reject(503)

        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.info("Loopback listener stopped")

    async def __aenter__(self) -> "LoopbackListener":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
