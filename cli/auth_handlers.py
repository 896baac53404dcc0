"""Authentication handlers for CLI"""

import logging
from typing import Optional

from cloud_auth import LoginFlow
from utils.storage import CredentialStore
from cli.status_display import show_credential_status

logger = logging.getLogger(__name__)


async def login(
    store: CredentialStore,
    console,
    port: Optional[int] = None,
    timeout: Optional[float] = None,
    open_browser: bool = True,
) -> bool:
    """
    Handle the login flow

    Args:
        store: CredentialStore the new credentials are written to
        console: Rich console for output
        port: Loopback callback port override
        timeout: Seconds to wait for the browser callback (None: no limit)
        open_browser: Open the authorization URL automatically

    Returns:
        True if credentials were stored
    """
    console.print("Starting OAuth login flow...")
    logger.debug("Starting authentication flow")

    flow = LoginFlow(
        store=store,
        port=port,
        timeout=timeout,
        open_browser=open_browser,
        console=console,
    )
    result = await flow.run()

    logger.debug(f"Authentication finished: success={result.success} step={result.step}")
    return result.success


def logout(store: CredentialStore, console) -> bool:
    """Remove stored credentials"""
    if not store.credentials_file.exists():
        console.print("[yellow]Already logged out[/yellow]")
        return False

    store.clear()
    console.print("[green]✓ Logged out[/green]")
    return True


def status(store: CredentialStore, console) -> bool:
    """Show stored credentials; returns whether a token is present"""
    show_credential_status(store, console)
    return store.is_authenticated()
