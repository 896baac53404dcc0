import httpx
import pytest
import respx

from platform_api import PlatformClient
from tasks import DEFAULT_MESSAGES, SUCCEEDED, TaskPoller
from utils.errors import TaskTimeoutError

MESSAGES = ["first tip", "second tip", "third tip"]


class StatusSequence:
    """Replays statuses (or raises exceptions) in order, failing if over-queried"""

    def __init__(self, statuses):
        self.statuses = list(statuses)
        self.queried = []

    async def __call__(self, task_id):
        self.queried.append(task_id)
        if not self.statuses:
            raise AssertionError("status queried after the task succeeded")
        status = self.statuses.pop(0)
        if isinstance(status, Exception):
            raise status
        return status


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def _poller(fetch, console, sleep=None, **kwargs) -> TaskPoller:
    return TaskPoller(
        fetch,
        interval=10,
        messages=MESSAGES,
        console=console,
        sleep=sleep or RecordingSleep(),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_pending_pending_running_succeeded(console):
    fetch = StatusSequence(["PENDING", "PENDING", "RUNNING", SUCCEEDED])
    sleep = RecordingSleep()
    poller = _poller(fetch, console, sleep=sleep)

    queries = await poller.wait_for_task("task-1", "Restoring backup", "Backup restored")

    assert queries == 4
    assert fetch.queried == ["task-1"] * 4
    assert sleep.delays == [10, 10, 10]
    assert poller.displayed_messages == MESSAGES
    assert "Backup restored" in console.file.getvalue()


@pytest.mark.asyncio
async def test_immediate_success_does_not_sleep(console):
    fetch = StatusSequence([SUCCEEDED])
    sleep = RecordingSleep()
    poller = _poller(fetch, console, sleep=sleep)

    assert await poller.wait_for_task("task-1", "Working", "Done") == 1
    assert sleep.delays == []
    assert poller.displayed_messages == []


@pytest.mark.parametrize("polls", [1, 2, 3, 4, 7])
@pytest.mark.asyncio
async def test_message_rotation_wraps(console, polls):
    fetch = StatusSequence(["RUNNING"] * polls + [SUCCEEDED])
    poller = _poller(fetch, console)

    await poller.wait_for_task("task-1", "Working", "Done")

    assert len(poller.displayed_messages) == polls
    for k, message in enumerate(poller.displayed_messages):
        assert message == MESSAGES[k % len(MESSAGES)]


@pytest.mark.asyncio
async def test_failed_status_is_not_terminal(console):
    fetch = StatusSequence(["FAILED", "QUEUED", "PENDING", "RUNNING", SUCCEEDED])
    poller = _poller(fetch, console)

    assert await poller.wait_for_task("task-1", "Working", "Done") == 5


@pytest.mark.asyncio
async def test_status_errors_count_as_pending_by_default(console):
    fetch = StatusSequence([httpx.ConnectError("boom"), "RUNNING", SUCCEEDED])
    poller = _poller(fetch, console)

    assert await poller.wait_for_task("task-1", "Working", "Done") == 3


@pytest.mark.asyncio
async def test_status_errors_raise_in_strict_mode(console):
    fetch = StatusSequence(["RUNNING", httpx.ConnectError("boom")])
    poller = _poller(fetch, console, errors_as_pending=False)

    with pytest.raises(httpx.ConnectError):
        await poller.wait_for_task("task-1", "Working", "Done")


@pytest.mark.asyncio
async def test_timeout_is_opt_in(console):
    now = [0.0]

    async def advancing_sleep(seconds):
        now[0] += seconds

    fetch = StatusSequence(["RUNNING"] * 10)
    poller = _poller(fetch, console, sleep=advancing_sleep, timeout=25, clock=lambda: now[0])

    with pytest.raises(TaskTimeoutError) as excinfo:
        await poller.wait_for_task("task-1", "Working", "Done")

    assert excinfo.value.task_id == "task-1"
    # queried at t=0, 10, 20, 30; gives up once 25s have elapsed
    assert len(fetch.queried) == 4


def test_empty_message_list_is_rejected(console):
    with pytest.raises(ValueError):
        TaskPoller(StatusSequence([]), messages=[], console=console)


def test_default_messages_are_used():
    poller = TaskPoller(StatusSequence([]))

    assert poller.messages == DEFAULT_MESSAGES
    assert poller.message_for_poll(len(DEFAULT_MESSAGES)) == DEFAULT_MESSAGES[0]


@pytest.mark.asyncio
async def test_unparseable_status_reply_counts_as_pending(console):
    client = PlatformClient(base_url="https://api.example.test", token="Token abc")

    with respx.mock() as router:
        route = router.get("https://api.example.test/service/task-status/task-1/").mock(
            side_effect=[
                httpx.Response(200, text="<html>upstream hiccup</html>"),
                httpx.Response(200, json={"status": SUCCEEDED}),
            ]
        )
        poller = _poller(client.get_task_status, console)
        queries = await poller.wait_for_task("task-1", "Working", "Done")

    assert queries == 2
    assert route.call_count == 2
