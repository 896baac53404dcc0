"""
Browser-based OAuth login for the cloud platform
"""
from .constants import (
    AFTER_EXCHANGE_POLICY,
    CALLBACK_PATH,
    SESSION_KEY,
    TOKEN_KEY,
    TOKEN_PREFIX,
)
from .authorization import (
    AuthProviderConfig,
    AuthorizationRequest,
    create_authorization_request,
    create_state,
    loopback_redirect_uri,
    new_session_id,
)
from .callback_server import (
    CompletionSignal,
    LoopbackListener,
    is_port_available,
)
from .token_exchange import (
    ExchangeResult,
    OAuthExchangeClient,
    ProviderTokens,
)
from .login import LoginFlow

__all__ = [
    # Constants
    "AFTER_EXCHANGE_POLICY",
    "CALLBACK_PATH",
    "SESSION_KEY",
    "TOKEN_KEY",
    "TOKEN_PREFIX",
    # Authorization
    "AuthProviderConfig",
    "AuthorizationRequest",
    "create_authorization_request",
    "create_state",
    "loopback_redirect_uri",
    "new_session_id",
    # Callback Server
    "CompletionSignal",
    "LoopbackListener",
    "is_port_available",
    # Token Exchange
    "ExchangeResult",
    "OAuthExchangeClient",
    "ProviderTokens",
    # Login
    "LoginFlow",
]
