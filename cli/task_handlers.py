"""Handlers for commands that start or wait on long-running tasks"""

import logging
from typing import Any, Dict, Optional

from cli.output import show_result
from cloud_auth import TOKEN_KEY
from platform_api import PlatformClient
from tasks import TaskPoller
from utils.errors import AuthError, CloudCLIError
from utils.storage import CredentialStore

logger = logging.getLogger(__name__)


def platform_client(store: CredentialStore) -> PlatformClient:
    """Platform client authenticated with the stored token"""
    token = store.get(TOKEN_KEY)
    if not token:
        raise AuthError("You are not logged in. Run 'cloud login' first.")
    return PlatformClient(token=token)


def resolve(store: CredentialStore, name: str, value: Optional[str]) -> str:
    """Use the explicit option, or fall back to the value saved in the store"""
    resolved = value or store.get(name)
    if not resolved:
        raise CloudCLIError(f"No {name} given. Pass --{name} or store a default {name}.")
    return resolved


async def wait_for_task(
    client: PlatformClient,
    task_id: str,
    pending_label: str,
    success_label: str,
    console,
    timeout: Optional[float] = None,
    interval: Optional[float] = None,
    strict_errors: bool = False,
) -> int:
    """Block until the task succeeds, showing progress on ``console``"""
    poller = TaskPoller(
        client.get_task_status,
        interval=interval,
        console=console,
        timeout=timeout,
        errors_as_pending=not strict_errors,
    )
    return await poller.wait_for_task(task_id, pending_label, success_label)


async def _follow(client: PlatformClient, result: Dict[str, Any], pending_label: str,
                  success_label: str, console, wait: bool):
    task_id = result.get("task_id")
    if not wait or not task_id:
        if task_id:
            console.print(f"Follow progress with [cyan]cloud task wait {task_id}[/cyan]")
        return
    await wait_for_task(client, task_id, pending_label, success_label, console)


async def env_upgrade(
    store: CredentialStore,
    console,
    service: str,
    organization: Optional[str] = None,
    environment: Optional[str] = None,
    wait: bool = True,
) -> Dict[str, Any]:
    """Upgrade an environment to another service version"""
    client = platform_client(store)
    organization = resolve(store, "organization", organization)
    environment = resolve(store, "environment", environment)

    result = await client.upgrade_environment(organization, environment, service)
    logger.debug(f"Upgrade of {organization}/{environment} started: {result.get('task_id')}")
    show_result(result, console)

    await _follow(client, result, "Upgrading environment", "Environment upgraded", console, wait)
    return result


async def backup_restore(
    store: CredentialStore,
    console,
    backup: str,
    organization: Optional[str] = None,
    environment: Optional[str] = None,
    wait: bool = True,
) -> Dict[str, Any]:
    """Restore a backup into an environment"""
    client = platform_client(store)
    organization = resolve(store, "organization", organization)
    environment = resolve(store, "environment", environment)

    result = await client.restore_backup(organization, environment, backup)
    logger.debug(f"Restore of {backup} into {organization}/{environment} started: {result.get('task_id')}")
    show_result(result, console)

    await _follow(client, result, "Restoring backup", "Backup restored", console, wait)
    return result


async def task_wait(
    store: CredentialStore,
    console,
    task_id: str,
    timeout: Optional[float] = None,
    interval: Optional[float] = None,
    strict_errors: bool = False,
) -> int:
    """Wait for an already submitted task"""
    client = platform_client(store)
    return await wait_for_task(
        client,
        task_id,
        f"Waiting for task {task_id}",
        f"Task {task_id} succeeded",
        console,
        timeout=timeout,
        interval=interval,
        strict_errors=strict_errors,
    )
