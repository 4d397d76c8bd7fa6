"""
PadPress Backend — Code-Hosting Integrations
=============================================

What:  Outbound calls to GitHub (export a note as a gist) and GitLab (list
       the signed-in user's projects).
How:   httpx.AsyncClient, one client per call, library default timeouts.
       No retries: every failure (network error, unexpected status, missing
       token) is raised as ExternalServiceError and the caller decides what
       it means.

GitHub gist export is two round trips:

    ┌────────────────────────┐  200 + access_token  ┌─────────────────┐  201  ┌──────────────┐
    │ POST /login/oauth/     │─────────────────────▶│ POST /gists     │──────▶│ gist html_url│
    │      access_token      │                      │ (token auth)    │       └──────────────┘
    └────────────────────────┘                      └─────────────────┘
        anything else ─▶ ExternalServiceError        anything else ─▶ ExternalServiceError

    The second call is never made when the first one fails.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_GISTS_URL = "https://api.github.com/gists"
USER_AGENT = "PadPress"


def _json_field(response: httpx.Response, field: str) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    return data.get(field) if isinstance(data, dict) else None


class GitHubGistExporter:

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.transport = transport

    async def exchange_code(self, client: httpx.AsyncClient, code: str, state: str) -> str:
        """OAuth code → access token."""
        try:
            response = await client.post(
                GITHUB_TOKEN_URL,
                json={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "state": state,
                },
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError("github", message="Token exchange failed", context={"error": str(e)})

        if response.status_code != 200:
            raise ExternalServiceError(
                "github",
                message="Token exchange rejected",
                status_code=response.status_code,
            )

        access_token = _json_field(response, "access_token")
        if not access_token:
            raise ExternalServiceError(
                "github",
                message="Token exchange returned no access token",
                status_code=response.status_code,
            )
        return access_token

    async def create_gist(
        self,
        client: httpx.AsyncClient,
        access_token: str,
        filename: str,
        content: str,
    ) -> str:
        """Create a gist holding one file; returns its html_url."""
        try:
            response = await client.post(
                GITHUB_GISTS_URL,
                json={"files": {filename: {"content": content}}},
                headers={
                    "User-Agent": USER_AGENT,
                    "Authorization": f"token {access_token}",
                },
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError("github", message="Gist creation failed", context={"error": str(e)})

        if response.status_code != 201:
            raise ExternalServiceError(
                "github",
                message="Gist creation rejected",
                status_code=response.status_code,
            )

        html_url = _json_field(response, "html_url")
        if not html_url:
            raise ExternalServiceError("github", message="Gist response has no html_url")
        return html_url

    async def export(self, code: str, state: str, filename: str, content: str) -> str:
        """
        Exchange the OAuth code, then create the gist.

        Returns:
            URL of the created gist.

        Raises:
            ExternalServiceError: either step failed
        """
        async with httpx.AsyncClient(transport=self.transport) as client:
            access_token = await self.exchange_code(client, code, state)
            html_url = await self.create_gist(client, access_token, filename, content)
        logger.info("Gist created: %s", html_url)
        return html_url


class GitLabClient:

    def __init__(
        self,
        base_url: str,
        version: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.version = version
        self.transport = transport

    async def list_projects(self, access_token: Optional[str]) -> List[Dict[str, Any]]:
        """
        Projects the token's owner is a member of (first 100).

        Raises:
            ExternalServiceError: request failed, non-200, or body not a list
        """
        url = f"{self.base_url}/api/{self.version}/projects"
        params = {"membership": "yes", "per_page": 100, "access_token": access_token or ""}
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise ExternalServiceError("gitlab", message="Project listing failed", context={"error": str(e)})

        if response.status_code != 200:
            raise ExternalServiceError(
                "gitlab",
                message="Project listing rejected",
                status_code=response.status_code,
            )

        try:
            projects = response.json()
        except ValueError:
            projects = None
        if not isinstance(projects, list):
            raise ExternalServiceError("gitlab", message="Project listing is not a list")
        return projects
