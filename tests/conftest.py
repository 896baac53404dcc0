import io
import socket
import sys
from pathlib import Path

import pytest
from rich.console import Console


ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cloud_auth import AuthProviderConfig  # noqa: E402
from utils.storage import CredentialStore  # noqa: E402


IDP_DOMAIN = "auth.example.test"
API_URL = "https://api.example.test/platform/api"
VERIFY_URL = "https://id.example.test/verify"
SIGN_IN_URL = "https://cloud.example.test/"


class RecordingStore(CredentialStore):
    """CredentialStore that remembers the order of reset/set calls"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []

    def reset(self):
        self.calls.append(("reset",))
        super().reset()

    def set(self, name, value):
        self.calls.append(("set", name))
        super().set(name, value)


@pytest.fixture
def store(tmp_path: Path) -> RecordingStore:
    return RecordingStore(str(tmp_path / "cloud" / "credentials.json"))


@pytest.fixture
def provider() -> AuthProviderConfig:
    return AuthProviderConfig(
        client_id="client-123",
        domain=IDP_DOMAIN,
        redirect_sign_in=SIGN_IN_URL,
        scopes=["openid", "email", "profile"],
    )


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=120)


@pytest.fixture
def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("localhost", 0))
        return sock.getsockname()[1]
