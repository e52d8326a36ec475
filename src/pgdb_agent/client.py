"""Agent HTTP client.

Talks to a running pgdb agent over its bearer-token authenticated API.
Used by the ``pgdb`` command line tool.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal
from urllib.parse import quote

import httpx

from pgdb_agent.core.models import DeployRequest, DeployResult, InstanceView


class ClientError(Exception):
    """Agent returned a non-2xx response or could not be reached.

    Attributes:
        status_code: HTTP status, None when the request never completed.
        message: Server-provided error message when available.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class ClientConfig:
    """Agent connection configuration."""

    endpoint: str
    token: str
    timeout: float = 15.0
    # Deploys wait up to 90s for readiness, plus image pulls
    deploy_timeout: float = 120.0


class PgdbClient:
    """Async HTTP client for the agent API."""

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> PgdbClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.token}",
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.endpoint,
                headers=self._get_headers(),
                timeout=self._config.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        method: Literal["get", "post", "delete"],
        path: str,
        *,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> Any:
        client = await self._get_client()
        if timeout:
            kwargs["timeout"] = timeout

        try:
            resp = await getattr(client, method)(path, **kwargs)
        except httpx.TimeoutException as exc:
            raise ClientError(f"request to {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise ClientError(f"request to {path} failed: {exc}") from exc

        if not resp.is_success:
            raise ClientError(_error_message(resp), status_code=resp.status_code)

        if not resp.content.strip():
            return None
        return resp.json()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def deploy(self, request: DeployRequest | None = None) -> DeployResult:
        body = (request or DeployRequest()).model_dump(exclude_none=True)
        data = await self._request(
            "post",
            "/v1/deploy",
            json=body,
            timeout=self._config.deploy_timeout,
        )
        return DeployResult.model_validate(data)

    async def status(self) -> list[InstanceView]:
        data = await self._request("get", "/v1/status")
        return [InstanceView.model_validate(item) for item in (data or {}).get("items", [])]

    async def destroy(self, name: str, keep_data: bool = False) -> None:
        await self._request(
            "delete",
            f"/v1/db/{quote(name, safe='')}",
            params={"keep_data": "true" if keep_data else "false"},
        )


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        text = resp.text.strip()
        return f"request failed ({resp.status_code})" + (f": {text}" if text else "")
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"request failed ({resp.status_code})"
