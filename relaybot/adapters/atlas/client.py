"""Atlas directory client using aiohttp. Implements DirectoryPort and DistributionPort."""

import asyncio
import sys
from typing import Any, Dict, List, Optional, Sequence

import aiohttp

from relaybot.config import CONFIG
from relaybot.domain.errors import DirectoryError, ResolutionError
from relaybot.domain.models import Distribution


def _log(msg: str):
    print(msg, file=sys.stderr)


class AtlasClient:
    """Async client for the users/tags directory and tag resolution."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._token = token if token is not None else CONFIG["atlas_token"]
        self._base_url = (base_url or CONFIG["atlas_url"]).rstrip("/")
        self._timeout = timeout if timeout is not None else CONFIG["http_timeout"]

    @property
    def is_configured(self) -> bool:
        return bool(self._token)

    async def _fetch(
        self,
        method: str,
        urn: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = f"{self._base_url}{urn}"
        headers = {"Authorization": f"JWT {self._token}"}
        try:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(
                    method, url, json=json, params=params, headers=headers,
                ) as resp:
                    if resp.status >= 400:
                        detail = await resp.text()
                        raise DirectoryError(f"{method} {urn} -> HTTP {resp.status}: {detail[:200]}")
                    if resp.status == 204:
                        return None
                    return await resp.json()
        except DirectoryError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise DirectoryError(f"{method} {urn} failed: {e}") from e

    async def patch_user(self, user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._fetch("PATCH", f"/v1/user/{user_id}/", json=fields)

    async def patch_tag(self, tag_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._fetch("PATCH", f"/v1/tag/{tag_id}/", json=fields)

    async def get_users(self, user_ids: Sequence[str]) -> List[Dict[str, Any]]:
        if not user_ids:
            return []
        data = await self._fetch("GET", "/v1/user/", params={"id_in": ",".join(user_ids)})
        users = {u["id"]: u for u in (data or {}).get("results", [])}
        # Keep the caller's order; unknown ids are dropped.
        return [users[uid] for uid in user_ids if uid in users]

    async def get_devices(self) -> List[Dict[str, Any]]:
        data = await self._fetch("GET", "/v1/provision/account")
        return list((data or {}).get("devices", []))

    async def resolve_expression(self, expression: str) -> Distribution:
        try:
            data = await self._fetch("POST", "/v1/tag/resolve", json={"expressions": [expression]})
        except DirectoryError as e:
            raise ResolutionError(str(e)) from e

        results = (data or {}).get("results") or []
        if not results:
            raise ResolutionError(f"No resolution result for {expression!r}")
        result = results[0]
        for warning in result.get("warnings") or []:
            _log(f"[atlas] tag expression warning: {warning}")
        return Distribution(
            expression=expression,
            members=frozenset(str(u) for u in result.get("userids") or []),
            pretty=result.get("pretty", ""),
        )
