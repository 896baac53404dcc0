"""Polling of long-running platform tasks (provisioning, restore, upgrade)"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional, Sequence

import httpx
from rich.console import Console

import settings
from utils.errors import APIError, TaskTimeoutError

logger = logging.getLogger(__name__)

# The only terminal status. Any other value, FAILED included, keeps polling.
SUCCEEDED = "SUCCEEDED"

DEFAULT_MESSAGES = [
    "Tip: run 'cloud status' to see which account and environment the CLI is using.",
    "Tip: long-running operations keep going on the platform even if you stop waiting here.",
    "Tip: resume waiting at any time with 'cloud task wait <task-id>'.",
]

StatusFetcher = Callable[[str], Awaitable[str]]


class TaskPoller:
    """Blocks until a remote task reports SUCCEEDED, rotating tips in the spinner

    Args:
        fetch_status: Coroutine returning the task's status literal
        interval: Seconds between status queries
        messages: Tips shown one per poll, wrapping around
        console: Rich console for the spinner and the success line
        sleep: Awaitable sleep, replaceable in tests
        timeout: Give up with TaskTimeoutError after this many seconds; None polls forever
        errors_as_pending: Treat a failed status query as "still pending"
        clock: Monotonic clock used for the timeout
    """

    def __init__(
        self,
        fetch_status: StatusFetcher,
        interval: Optional[float] = None,
        messages: Optional[Sequence[str]] = None,
        console: Optional[Console] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        timeout: Optional[float] = None,
        errors_as_pending: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetch_status = fetch_status
        self.interval = interval if interval is not None else settings.TASK_POLL_INTERVAL
        self.messages = list(messages) if messages is not None else list(DEFAULT_MESSAGES)
        if not self.messages:
            raise ValueError("TaskPoller needs at least one message")
        self.console = console or Console()
        self.sleep = sleep
        self.timeout = timeout
        self.errors_as_pending = errors_as_pending
        self.clock = clock
        self.displayed_messages: List[str] = []

    def message_for_poll(self, poll_index: int) -> str:
        """Message shown after the ``poll_index``-th non-terminal poll (0-based)"""
        return self.messages[poll_index % len(self.messages)]

    async def _query(self, task_id: str) -> Optional[str]:
        try:
            return await self.fetch_status(task_id)
        except (httpx.HTTPError, APIError, ValueError) as e:
            if not self.errors_as_pending:
                raise
            logger.warning(f"Status query for task {task_id} failed, still waiting: {e}")
            return None

    async def wait_for_task(self, task_id: str, pending_label: str, success_label: str) -> int:
        """
        Poll ``task_id`` until it succeeds.

        Args:
            task_id: Platform task identifier
            pending_label: Spinner text while the task runs
            success_label: Line printed once the task succeeded

        Returns:
            Number of status queries issued

        Raises:
            TaskTimeoutError: A timeout was set and elapsed first
        """
        self.displayed_messages = []
        started = self.clock()

        with self.console.status(f"{pending_label}...") as spinner:
            status = await self._query(task_id)
            queries = 1

            while status != SUCCEEDED:
                logger.debug(f"Task {task_id} status: {status}")
                if self.timeout is not None and self.clock() - started >= self.timeout:
                    raise TaskTimeoutError(task_id, self.timeout)

                await self.sleep(self.interval)

                message = self.message_for_poll(len(self.displayed_messages))
                self.displayed_messages.append(message)
                spinner.update(f"{pending_label}...\n\n  {message}")

                status = await self._query(task_id)
                queries += 1

        logger.debug(f"Task {task_id} succeeded after {queries} status queries")
        self.console.print(f"[green]✓[/green] {success_label}")
        return queries

