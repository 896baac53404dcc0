"""Interactive browser login"""

import logging
import webbrowser
from typing import Callable, Optional

from rich.console import Console

import settings
from platform_api import PlatformClient
from utils.storage import CredentialStore
from .authorization import AuthProviderConfig, create_authorization_request, loopback_redirect_uri
from .callback_server import LoopbackListener
from .token_exchange import ExchangeResult, OAuthExchangeClient

logger = logging.getLogger(__name__)


class LoginFlow:
    """Run one login attempt: state, callback server, browser, exchange, teardown

    Args:
        store: Credential store the exchange writes into
        provider: Identity provider configuration (default: from settings)
        port: Loopback port (default: settings.CALLBACK_PORT)
        timeout: Seconds to wait for the browser callback; None waits forever
        open_browser: Open the authorization URL automatically
        console: Rich console for user-facing output
        platform: Platform API client used for the token exchange
        listener_factory: Builds the callback server; tests pass instrumented ones
    """

    def __init__(
        self,
        store: Optional[CredentialStore] = None,
        provider: Optional[AuthProviderConfig] = None,
        port: Optional[int] = None,
        timeout: Optional[float] = None,
        open_browser: bool = True,
        console: Optional[Console] = None,
        platform: Optional[PlatformClient] = None,
        listener_factory: Callable[..., LoopbackListener] = LoopbackListener,
    ):
        self.store = store or CredentialStore()
        self.provider = provider
        self.port = port if port is not None else settings.CALLBACK_PORT
        self.timeout = timeout
        self.open_browser = open_browser
        self.console = console or Console()
        self.platform = platform
        self.listener_factory = listener_factory

    def _open_browser(self, url: str):
        if self.open_browser:
            try:
                opened = webbrowser.open(url)
            except webbrowser.Error as e:
                logger.debug(f"Browser launch failed: {e}")
                opened = False

            if opened:
                self.console.print("[green]✓ Browser opened[/green]")
                return
            self.console.print("[yellow]⚠ Could not open browser automatically[/yellow]")

        self.console.print("\nPlease open this URL in your browser:")
        self.console.print(f"[cyan]{url}[/cyan]\n", soft_wrap=True)

    async def run(self) -> ExchangeResult:
        """
        Run the login attempt end to end.

        Returns:
            ExchangeResult of the accepted callback

        Raises:
            AuthError: Provider configuration is missing
            PortInUseError: The loopback port is taken; raised before the browser opens
            CallbackTimeoutError: Only when a timeout was requested
        """
        provider = self.provider or AuthProviderConfig.from_settings()
        redirect_uri = loopback_redirect_uri(self.port)
        auth_request = create_authorization_request(provider, redirect_uri)

        exchange = OAuthExchangeClient(
            provider=provider,
            store=self.store,
            redirect_uri=redirect_uri,
            platform=self.platform,
        )
        listener = self.listener_factory(
            port=self.port,
            expected_state=auth_request.state,
            on_code=exchange.run,
            redirect_url=provider.redirect_sign_in,
        )

        await listener.start()
        logger.debug(f"Login attempt started, redirect URI {redirect_uri}")

        try:
            self._open_browser(auth_request.url)
            with self.console.status("Waiting for you to log in in the browser..."):
                result = await listener.wait_for_completion(timeout=self.timeout)
        finally:
            await listener.stop()

        if result is None:
            result = ExchangeResult.failed("callback", "authorization code handler did not return a result")

        if result.success:
            self.console.print("[bold green]✓ You've successfully logged in.[/bold green]")
            self.console.print(f"[dim]Your credentials are stored in {self.store.credentials_file}[/dim]")
        else:
            # The browser was redirected anyway; say here that nothing was saved
            self.console.print(f"[red]✗ Login failed at step '{result.step}': {result.error}[/red]")
            self.console.print("[dim]The browser may report success; no credentials were stored.[/dim]")

        return result
