"""
Authorization code exchange: IdP tokens -> platform token -> stored credentials
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

import settings
from platform_api import PlatformClient
from utils.storage import CredentialStore
from utils.errors import CloudCLIError, ExchangeError
from .authorization import AuthProviderConfig, new_session_id
from .constants import GRANT_TYPE, SESSION_KEY, TOKEN_KEY, TOKEN_PREFIX

logger = logging.getLogger(__name__)

STEP_AUTHORIZATION_CODE = "authorization_code"
STEP_PLATFORM_TOKEN = "platform_token"
STEP_VERIFY = "verify"
STEP_STORE = "store"


@dataclass
class ProviderTokens:
    """Tokens returned by the identity provider's token endpoint"""
    id_token: str
    access_token: str


@dataclass
class ExchangeResult:
    """Outcome of one run of the exchange pipeline"""
    success: bool
    step: Optional[str] = None
    error: Optional[str] = None
    stored_keys: List[str] = field(default_factory=list)

    @classmethod
    def failed(cls, step: str, error: str) -> "ExchangeResult":
        return cls(success=False, step=step, error=error)


class OAuthExchangeClient:
    """Turns an authorization code into platform credentials

    ``run()`` performs four named steps in order and stops at the first
    failure. Failures come back as an ``ExchangeResult``; ``run()`` itself
    does not raise, so the callback server can always finish the browser
    round trip.
    """

    def __init__(
        self,
        provider: AuthProviderConfig,
        store: CredentialStore,
        redirect_uri: str,
        platform: Optional[PlatformClient] = None,
        environment: Optional[str] = None,
        verify_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.provider = provider
        self.store = store
        self.redirect_uri = redirect_uri
        self.platform = platform or PlatformClient()
        self.environment = environment or settings.ENVIRONMENT
        self.verify_url = verify_url or settings.VERIFY_URL
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT

    async def exchange_code(self, code: str) -> ProviderTokens:
        """Exchange the authorization code at the identity provider's token endpoint"""
        if not code:
            raise ExchangeError(STEP_AUTHORIZATION_CODE, "callback carried no authorization code")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.provider.token_url,
                data={
                    "grant_type": GRANT_TYPE,
                    "code": code,
                    "client_id": self.provider.client_id,
                    "redirect_uri": self.redirect_uri,
                },
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                },
            )

        if response.status_code != 200:
            raise ExchangeError(
                STEP_AUTHORIZATION_CODE,
                f"token endpoint returned HTTP {response.status_code}: {response.text}",
            )

        data = response.json()
        id_token = data.get("id_token")
        access_token = data.get("access_token")
        if not id_token or not access_token:
            raise ExchangeError(STEP_AUTHORIZATION_CODE, "token response is missing id_token or access_token")

        return ProviderTokens(id_token=id_token, access_token=access_token)

    async def fetch_secrets(self, access_token: str) -> Dict[str, Any]:
        """Fetch the supplementary credential fields from the verification endpoint"""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.verify_url,
                json={
                    "token": access_token,
                    "environment": self.environment,
                },
            )

        if response.status_code != 200:
            raise ExchangeError(STEP_VERIFY, f"verification endpoint returned HTTP {response.status_code}")

        data = response.json()
        if not isinstance(data, dict):
            raise ExchangeError(STEP_VERIFY, "verification response is not an object")
        return data

    def save_credentials(self, platform_token: str, secrets: Dict[str, Any]) -> List[str]:
        """Replace everything in the store with the new login's fields"""
        self.store.reset()
        self.store.set(TOKEN_KEY, f"{TOKEN_PREFIX}{platform_token}")
        self.store.set(SESSION_KEY, new_session_id())
        for name, value in secrets.items():
            self.store.set(name, value)
        return [TOKEN_KEY, SESSION_KEY, *secrets.keys()]

    async def run(self, code: str) -> ExchangeResult:
        """
        Run the full exchange for one accepted callback.

        Args:
            code: Authorization code from the callback query string

        Returns:
            ExchangeResult describing success or the step that failed
        """
        step = STEP_AUTHORIZATION_CODE
        try:
            tokens = await self.exchange_code(code)
            logger.debug("Obtained identity provider tokens")

            step = STEP_PLATFORM_TOKEN
            platform_token = await self.platform.obtain_token(tokens.id_token)
            logger.debug(f"Obtained platform token (length: {len(platform_token)})")

            step = STEP_VERIFY
            secrets = await self.fetch_secrets(tokens.access_token)
            logger.debug(f"Fetched {len(secrets)} credential field(s) from verification endpoint")

            step = STEP_STORE
            stored_keys = self.save_credentials(platform_token, secrets)

        except ExchangeError as e:
            logger.error(f"Login exchange failed at step '{e.step}': {e.message}")
            return ExchangeResult.failed(e.step, e.message)
        except (CloudCLIError, httpx.HTTPError, OSError, ValueError) as e:
            logger.error(f"Login exchange failed at step '{step}': {e}")
            return ExchangeResult.failed(step, str(e))
        except Exception as e:
            # Any failure ends the pipeline without raising: the callback
            # server redirects the browser either way
            logger.exception(f"Login exchange failed at step '{step}'")
            return ExchangeResult.failed(step, str(e))

        logger.info(f"Stored {len(stored_keys)} credential field(s)")
        return ExchangeResult(success=True, stored_keys=stored_keys)
