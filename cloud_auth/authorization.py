"""
OAuth authorization request for the platform's identity provider
"""
import secrets
import uuid
from dataclasses import dataclass, field
from typing import List, NamedTuple
from urllib.parse import urlencode

import settings
from utils.errors import AuthError
from .constants import AUTHORIZE_PATH, CALLBACK_HOST, CALLBACK_PATH, RESPONSE_TYPE, TOKEN_PATH


@dataclass
class AuthProviderConfig:
    """Identity provider settings used to build and complete the login"""
    client_id: str
    domain: str
    redirect_sign_in: str
    scopes: List[str] = field(default_factory=list)
    identity_provider: str = "COGNITO"

    @classmethod
    def from_settings(cls) -> "AuthProviderConfig":
        """Load provider configuration from settings (env / .env / defaults)"""
        if not settings.OAUTH_CLIENT_ID:
            raise AuthError(
                "OAuth client id is not configured. Set CLOUD_OAUTH_CLIENT_ID in the environment or .env file."
            )
        return cls(
            client_id=settings.OAUTH_CLIENT_ID,
            domain=settings.OAUTH_DOMAIN,
            redirect_sign_in=settings.OAUTH_REDIRECT_SIGN_IN,
            scopes=list(settings.OAUTH_SCOPES),
            identity_provider=settings.OAUTH_IDENTITY_PROVIDER,
        )

    @property
    def authorize_url(self) -> str:
        return f"https://{self.domain}{AUTHORIZE_PATH}"

    @property
    def token_url(self) -> str:
        return f"https://{self.domain}{TOKEN_PATH}"


class AuthorizationRequest(NamedTuple):
    """One login attempt: its state token and the URL to open in the browser"""
    state: str
    url: str


def create_state() -> str:
    """
    Generate random state parameter for CSRF protection.

    Returns:
        str: URL-safe random string, never reused across attempts
    """
    return secrets.token_urlsafe(32)


def new_session_id() -> str:
    """Generate the session identifier stored alongside a fresh login"""
    return str(uuid.uuid4())


def loopback_redirect_uri(port: int) -> str:
    """Redirect URI registered for the OAuth client"""
    return f"http://{CALLBACK_HOST}:{port}{CALLBACK_PATH}"


def create_authorization_request(
    provider: AuthProviderConfig,
    redirect_uri: str,
) -> AuthorizationRequest:
    """
    Create the authorization request for a new login attempt.

    Args:
        provider: Identity provider configuration
        redirect_uri: Loopback redirect URI the callback server listens on

    Returns:
        AuthorizationRequest: Tuple of (state, url)
    """
    state = create_state()

    params = {
        "response_type": RESPONSE_TYPE,
        "client_id": provider.client_id,
        "redirect_uri": redirect_uri,
        "identity_provider": provider.identity_provider,
        "scope": " ".join(provider.scopes),
        "state": state,
    }

    url = f"{provider.authorize_url}?{urlencode(params)}"

    return AuthorizationRequest(state=state, url=url)
