"""Async client for the hooks service (position shortcuts and swap quotes)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..core.errors import HooksApiError


logger = logging.getLogger(__name__)


class HooksApiProvider:
    """Thin wrapper around the hooks service endpoints.

    Every call may target a different base URL: the deposit request carries the
    ``hooks_api_url`` it was built against.
    """

    name = "hooks"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout_s: Optional[int] = None,
    ) -> None:
        self.base_url = (base_url or settings.hooks_api_url).rstrip("/")
        self.timeout_s = timeout_s or settings.request_timeout_seconds

    def _headers(self) -> Dict[str, str]:
        return {
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": f"EarnDepositClient/{settings.app_version}",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        hooks_api_url: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        base_url = (hooks_api_url or self.base_url).rstrip("/")
        try:
            async with httpx.AsyncClient(base_url=base_url, timeout=self.timeout_s) as client:
                response = await client.request(method, path, json=json, headers=self._headers(), **kwargs)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(f"Hooks {path} returned {exc.response.status_code}")
            raise HooksApiError(
                f"Hooks service {path} failed with status {exc.response.status_code}",
                status_code=exc.response.status_code,
                details={"body": exc.response.text[:500]},
            ) from exc
        except httpx.RequestError as exc:
            logger.warning(f"Hooks {path} request error: {exc}")
            raise HooksApiError(f"Hooks service {path} unreachable: {exc}") from exc
        except ValueError as exc:
            raise HooksApiError(f"Hooks service {path} returned a non-JSON body") from exc

        if not isinstance(body, dict):
            raise HooksApiError(f"Hooks service {path} returned an unexpected payload")
        return body

    async def trigger_shortcut(
        self,
        payload: Dict[str, Any],
        *,
        hooks_api_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Build the transactions of a position shortcut (e.g. ``deposit``).

        Returns the ``data`` object: ``{"transactions": [...], "dataProps": {...}}``.
        """
        body = await self._request("POST", "/triggerShortcut", hooks_api_url=hooks_api_url, json=payload)
        data = body.get("data")
        if not isinstance(data, dict) or not isinstance(data.get("transactions"), list):
            raise HooksApiError(
                "Shortcut response is missing transactions",
                details={"message": body.get("message")},
            )
        return data

    async def get_swap_quote(
        self,
        payload: Dict[str, Any],
        *,
        hooks_api_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Request a swap quote; returns the full body including ``unvalidatedSwapTransaction``."""
        body = await self._request("POST", "/getSwapQuote", hooks_api_url=hooks_api_url, json=payload)
        if not isinstance(body.get("unvalidatedSwapTransaction"), dict):
            raise HooksApiError("Swap quote response is missing the swap transaction")
        return body
