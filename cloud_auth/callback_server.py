"""
Loopback HTTP server that receives the OAuth authorization callback
"""
import asyncio
import logging
import socket
from typing import Any, Awaitable, Callable, Optional

from aiohttp import web

from utils.errors import CallbackTimeoutError, PortInUseError
from .constants import AFTER_EXCHANGE_POLICY, CALLBACK_HOST, CALLBACK_PATH

logger = logging.getLogger(__name__)

CodeHandler = Callable[[str], Awaitable[Any]]


class CompletionSignal:
    """One-shot completion signal shared by the callback handler and the login flow

    Setting it more than once is a no-op.
    """

    def __init__(self):
        self._future: Optional[asyncio.Future] = None

    def _get_future(self) -> asyncio.Future:
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    def set(self, value: Any = None) -> bool:
        """Resolve the signal; returns False if it was already resolved"""
        future = self._get_future()
        if future.done():
            logger.debug("Completion already signalled, ignoring")
            return False
        future.set_result(value)
        return True

    def is_set(self) -> bool:
        return self._future is not None and self._future.done()

    async def wait(self, timeout: Optional[float] = None) -> Any:
        """Wait for the value; raises asyncio.TimeoutError if ``timeout`` elapses first"""
        future = self._get_future()
        if timeout is None:
            return await future

        # asyncio.wait leaves the future alone on timeout, so a late callback still resolves it
        done, _ = await asyncio.wait({future}, timeout=timeout)
        if not done:
            raise asyncio.TimeoutError()
        return future.result()


def is_port_available(port: int, host: str = CALLBACK_HOST) -> bool:
    """Check whether ``host:port`` can be bound right now"""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind((host, port))
        return True
    except OSError:
        return False


class LoopbackListener:
    """Local HTTP server for exactly one successful OAuth callback

    Serves ``GET /`` on a fixed local port. A callback whose ``state`` does
    not match is answered with 400 and the server keeps waiting. A matching
    callback runs ``on_code`` with the authorization code, redirects the
    browser to ``redirect_url`` and signals completion. The redirect and the
    completion happen even when the exchange failed: ``on_code`` reports its
    own outcome, the browser always leaves the loopback page.
    """

    def __init__(
        self,
        port: int,
        expected_state: str,
        on_code: CodeHandler,
        redirect_url: str,
        host: str = CALLBACK_HOST,
    ):
        self.port = port
        self.host = host
        self.expected_state = expected_state
        self.on_code = on_code
        self.redirect_url = redirect_url
        self.exchange_result: Any = None
        self._accepted = False
        self.completed = CompletionSignal()
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

        self.app.router.add_get(CALLBACK_PATH, self._handle_callback)

    @property
    def is_running(self) -> bool:
        return self.runner is not None

    async def start(self) -> None:
        """Start the callback server

        Raises:
            PortInUseError: The port is held by another process
        """
        if not is_port_available(self.port, self.host):
            raise PortInUseError(self.port)

        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        self.site = web.TCPSite(self.runner, host=self.host, port=self.port)

        try:
            await self.site.start()
        except OSError as e:
            # Lost a race with another process between the check and the bind
            await self.runner.cleanup()
            self.runner = None
            self.site = None
            raise PortInUseError(self.port) from e

        logger.debug(f"OAuth callback server listening on {self.host}:{self.port}{CALLBACK_PATH}")

    async def stop(self) -> None:
        """Stop the callback server; calling it again is a no-op"""
        if self.runner is None:
            return

        runner = self.runner
        self.runner = None
        self.site = None
        await runner.cleanup()
        logger.debug("OAuth callback server stopped")

    async def wait_for_completion(self, timeout: Optional[float] = None) -> Any:
        """
        Wait until a valid callback has been handled.

        Args:
            timeout: Seconds to wait; None waits until the process ends

        Returns:
            Whatever ``on_code`` returned for the accepted callback

        Raises:
            CallbackTimeoutError: ``timeout`` elapsed first
        """
        try:
            return await self.completed.wait(timeout=timeout)
        except asyncio.TimeoutError:
            raise CallbackTimeoutError(f"No OAuth callback received within {timeout:g} seconds")

    async def _handle_callback(self, request: web.Request) -> web.StreamResponse:
        """Handle OAuth callback request"""
        state = request.query.get("state")
        code = request.query.get("code", "")

        if state != self.expected_state:
            logger.warning("Rejected OAuth callback with wrong state parameter")
            return web.Response(status=400, text="Wrong state")

        if self._accepted:
            logger.debug("Ignoring repeated OAuth callback, a code was already accepted")
            raise web.HTTPFound(self.redirect_url)

        # Claimed before the first await so concurrent callbacks cannot both run on_code
        self._accepted = True

        error = request.query.get("error")
        if error:
            logger.error(f"Identity provider returned error: {error} {request.query.get('error_description', '')}".rstrip())

        try:
            self.exchange_result = await self.on_code(code)
        except Exception:
            # on_code reports failures through its result; anything raised here
            # must still not leave the browser hanging
            logger.exception("Authorization code handler raised")
            self.exchange_result = None

        logger.debug(f"Code handled, applying {AFTER_EXCHANGE_POLICY} policy")

        # Flush the redirect before signalling, so stopping the server cannot cut it off
        response = web.Response(status=302, headers={"Location": self.redirect_url})
        await response.prepare(request)
        await response.write_eof()

        self.completed.set(self.exchange_result)
        return response
