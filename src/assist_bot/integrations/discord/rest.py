from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from .constants import DISCORD_API_BASE_URL, DISCORD_CHANNEL_TYPE_PRIVATE_THREAD
from .errors import (
    DiscordAPIError,
    DiscordNotFoundError,
    DiscordPermanentError,
    DiscordTransientError,
)

logger = logging.getLogger(__name__)

_RETRYABLE_NETWORK_ERRORS = (
    httpx.ConnectError,
    httpx.ReadError,
    httpx.WriteError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.WriteTimeout,
    httpx.PoolTimeout,
    httpx.RemoteProtocolError,
)


class DiscordRestClient:
    """Thin async wrapper over the Discord HTTP API.

    Rate limits (HTTP 429) are retried here using ``Retry-After``. Server and
    network failures surface as ``DiscordTransientError`` so that callers can
    decide whether the operation is safe to repeat.
    """

    def __init__(
        self,
        *,
        bot_token: str,
        timeout_seconds: float = 10.0,
        base_url: str = DISCORD_API_BASE_URL,
        max_rate_limit_retries: int = 3,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)
        self._authorization_header = f"Bot {bot_token}"
        self._max_rate_limit_retries = max_rate_limit_retries

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DiscordRestClient":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
        expect_json: bool = True,
    ) -> Any:
        rate_limit_retries = 0

        while True:
            try:
                response = await self._client.request(
                    method,
                    path,
                    json=payload,
                    headers={"Authorization": self._authorization_header},
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status_code = exc.response.status_code
                if status_code == 429:
                    retry_after_raw = exc.response.headers.get("Retry-After")
                    if (
                        retry_after_raw is not None
                        and rate_limit_retries < self._max_rate_limit_retries
                    ):
                        rate_limit_retries += 1
                        try:
                            retry_after = max(float(retry_after_raw), 0.0)
                        except ValueError:
                            retry_after = 0.0
                        logger.info(
                            "Discord rate limited on %s %s, retrying after %.1fs (attempt %d)",
                            method,
                            path,
                            retry_after,
                            rate_limit_retries,
                        )
                        await asyncio.sleep(retry_after)
                        continue
                    raise DiscordTransientError(
                        f"Discord API rate limit exceeded for {method} {path}",
                        status_code=status_code,
                    ) from exc

                body_preview = (
                    (exc.response.text or "").strip().replace("\n", " ")[:200]
                )
                detail = f"status={status_code} body={body_preview!r}"
                if 500 <= status_code < 600:
                    raise DiscordTransientError(
                        f"Discord API server error for {method} {path}: {detail}",
                        status_code=status_code,
                    ) from exc
                if status_code in {401, 403}:
                    raise DiscordPermanentError(
                        f"Discord API authorization failure for {method} {path}: {detail}",
                        status_code=status_code,
                    ) from exc
                if status_code == 404:
                    raise DiscordNotFoundError(
                        f"Discord API entity not found for {method} {path}: {detail}",
                        status_code=status_code,
                    ) from exc
                raise DiscordAPIError(
                    f"Discord API request failed for {method} {path}: {detail}",
                    status_code=status_code,
                ) from exc
            except _RETRYABLE_NETWORK_ERRORS as exc:
                raise DiscordTransientError(
                    f"Discord API network error for {method} {path}: "
                    f"{type(exc).__name__}: {exc}"
                ) from exc
            except httpx.HTTPError as exc:
                raise DiscordAPIError(
                    f"Discord API network error for {method} {path}: {exc}"
                ) from exc

            if not expect_json or not response.content:
                return {} if expect_json else None
            try:
                return response.json()
            except ValueError as exc:
                raise DiscordAPIError(
                    f"Discord API returned non-JSON success response for {method} {path}"
                ) from exc

    async def get_gateway_bot(self) -> dict[str, Any]:
        payload = await self._request("GET", "/gateway/bot")
        return payload if isinstance(payload, dict) else {}

    async def get_current_user(self) -> dict[str, Any]:
        payload = await self._request("GET", "/users/@me")
        return payload if isinstance(payload, dict) else {}

    async def list_guild_channels(self, *, guild_id: str) -> list[dict[str, Any]]:
        payload = await self._request("GET", f"/guilds/{guild_id}/channels")
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict)]

    async def create_interaction_response(
        self,
        *,
        interaction_id: str,
        interaction_token: str,
        payload: dict[str, Any],
    ) -> None:
        await self._request(
            "POST",
            f"/interactions/{interaction_id}/{interaction_token}/callback",
            payload=payload,
            expect_json=False,
        )

    async def create_channel_message(
        self,
        *,
        channel_id: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        response = await self._request(
            "POST",
            f"/channels/{channel_id}/messages",
            payload=payload,
        )
        return response if isinstance(response, dict) else {}

    async def edit_channel_message(
        self,
        *,
        channel_id: str,
        message_id: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        response = await self._request(
            "PATCH",
            f"/channels/{channel_id}/messages/{message_id}",
            payload=payload,
        )
        return response if isinstance(response, dict) else {}

    async def delete_channel_message(
        self,
        *,
        channel_id: str,
        message_id: str,
    ) -> None:
        await self._request(
            "DELETE",
            f"/channels/{channel_id}/messages/{message_id}",
            expect_json=False,
        )

    async def pin_message(self, *, channel_id: str, message_id: str) -> None:
        await self._request(
            "PUT",
            f"/channels/{channel_id}/pins/{message_id}",
            expect_json=False,
        )

    async def create_thread(
        self,
        *,
        channel_id: str,
        name: str,
        thread_type: int = DISCORD_CHANNEL_TYPE_PRIVATE_THREAD,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": name[:100], "type": thread_type}
        response = await self._request(
            "POST",
            f"/channels/{channel_id}/threads",
            payload=payload,
        )
        return response if isinstance(response, dict) else {}

    async def modify_channel(
        self,
        *,
        channel_id: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        response = await self._request(
            "PATCH",
            f"/channels/{channel_id}",
            payload=payload,
        )
        return response if isinstance(response, dict) else {}

    async def delete_channel(self, *, channel_id: str) -> None:
        await self._request(
            "DELETE",
            f"/channels/{channel_id}",
            expect_json=False,
        )
