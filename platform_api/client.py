"""
HTTP client for the cloud platform REST API
"""
import logging
from typing import Any, Dict, Optional

import httpx

import settings
from utils.errors import APIError, AuthError

logger = logging.getLogger(__name__)


class API:
    """Platform endpoint paths, relative to the API base URL"""
    TOKEN = "token/"
    TASK_STATUS = "service/task-status/{task_id}/"
    UPGRADE_ENVIRONMENT = "organizations/{organization}/environments/{environment}/upgrade/"
    RESTORE_BACKUP = "organizations/{organization}/environments/{environment}/restore/"


class PlatformClient:
    """Thin async client for the platform endpoints used by the CLI

    Args:
        base_url: API root, e.g. https://cloud.example.com/platform/api
        token: Stored credential sent verbatim as the Authorization header
               (it already carries its ``Token`` prefix)
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT

    def url(self, path: str, **params: str) -> str:
        return f"{self.base_url}/{path.format(**params)}"

    async def _request(
        self,
        method: str,
        path: str,
        authorization: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
        **params: str,
    ) -> Dict[str, Any]:
        url = self.url(path, **params)
        headers = {"Accept": "application/json"}

        auth_header = authorization or self.token
        if auth_header:
            headers["Authorization"] = auth_header

        logger.debug(f"{method} {url}")
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.request(method, url, headers=headers, json=json)

        if response.status_code >= 400:
            logger.error(f"{method} {url} failed: HTTP {response.status_code}")
            raise APIError(response.status_code, response.text, url=url)

        if not response.content:
            return {}
        return response.json()

    def _require_token(self):
        if not self.token:
            raise AuthError("You are not logged in. Run 'cloud login' first.")

    async def obtain_token(self, id_token: str) -> str:
        """Exchange an identity provider ID token for a platform token"""
        data = await self._request("POST", API.TOKEN, authorization=f"Bearer {id_token}")
        token = data.get("token")
        if not token:
            raise APIError(200, "Token endpoint response has no token", url=self.url(API.TOKEN))
        return token

    async def get_task_status(self, task_id: str) -> str:
        """Return the remote status literal of a long-running task"""
        self._require_token()
        data = await self._request("GET", API.TASK_STATUS, task_id=task_id)
        return str(data.get("status", ""))

    async def upgrade_environment(self, organization: str, environment: str, service: str) -> Dict[str, Any]:
        """Start an environment upgrade to ``service``; the reply carries a task_id"""
        self._require_token()
        return await self._request(
            "PUT",
            API.UPGRADE_ENVIRONMENT,
            json={"service": service},
            organization=organization,
            environment=environment,
        )

    async def restore_backup(self, organization: str, environment: str, backup: str) -> Dict[str, Any]:
        """Start restoring ``backup`` into an environment; the reply carries a task_id"""
        self._require_token()
        return await self._request(
            "POST",
            API.RESTORE_BACKUP,
            json={"restore_from": backup},
            organization=organization,
            environment=environment,
        )
