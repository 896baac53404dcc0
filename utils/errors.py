"""Error types raised by cloud-cli"""

from typing import Optional


class CloudCLIError(Exception):
    """Base class for errors reported to the user by the CLI"""


class AuthError(CloudCLIError):
    """Authentication is missing, invalid or misconfigured"""


class PortInUseError(AuthError):
    """The loopback callback port is held by another process"""

    def __init__(self, port: int):
        super().__init__(
            f"Port {port} is already in use. "
            "Make sure no other login is running, or pick another port with --port."
        )
        self.port = port


class CallbackTimeoutError(AuthError):
    """No valid OAuth callback arrived within the requested timeout"""


class ExchangeError(AuthError):
    """A step of the authorization code exchange failed"""

    def __init__(self, step: str, message: str):
        super().__init__(f"{step}: {message}")
        self.step = step
        self.message = message


class APIError(CloudCLIError):
    """The platform API answered with a non-success status"""

    def __init__(self, status_code: int, message: str, url: Optional[str] = None):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.url = url


class TaskTimeoutError(CloudCLIError):
    """A polled task did not succeed within the requested timeout"""

    def __init__(self, task_id: str, timeout: float):
        super().__init__(f"Task {task_id} did not succeed within {timeout:g}s")
        self.task_id = task_id
        self.timeout = timeout
