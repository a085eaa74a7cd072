"""API.AI (v1 query endpoint) client using aiohttp — implements NluPort."""

import asyncio
import sys
from typing import Any, Dict, Optional

import aiohttp
from pydantic import BaseModel, Field, ValidationError

from relaybot.config import CONFIG
from relaybot.domain.errors import NluRequestError
from relaybot.domain.models import NluResult


def _log(msg: str):
    print(msg, file=sys.stderr)


# Wire models. Only the fields the bot reads.


class Fulfillment(BaseModel):
    speech: str = ""


class QueryResult(BaseModel):
    action: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    fulfillment: Fulfillment = Field(default_factory=Fulfillment)
    resolvedQuery: Optional[str] = None


class Status(BaseModel):
    code: int = 200
    errorType: str = "success"
    errorDetails: Optional[str] = None


class QueryResponse(BaseModel):
    result: Optional[QueryResult] = None
    status: Status = Field(default_factory=Status)
    sessionId: Optional[str] = None


class NluClient:
    """Async API.AI text query client. One request per call, no retries."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        protocol_version: Optional[str] = None,
        lang: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._token = token if token is not None else CONFIG["api_ai_token"]
        self._base_url = (base_url or CONFIG["api_ai_url"]).rstrip("/")
        self._version = protocol_version or CONFIG["api_ai_version"]
        self._lang = lang or CONFIG["api_ai_lang"]
        self._timeout = timeout if timeout is not None else CONFIG["http_timeout"]

    @property
    def is_configured(self) -> bool:
        return bool(self._token)

    async def query(self, text: str, session_id: str) -> NluResult:
        url = f"{self._base_url}/query"
        params = {"v": self._version}
        headers = {"Authorization": f"Bearer {self._token}"}
        body = {"query": text, "sessionId": session_id, "lang": self._lang}

        try:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, params=params, json=body, headers=headers) as resp:
                    if resp.status >= 400:
                        detail = await resp.text()
                        raise NluRequestError(f"HTTP {resp.status}: {detail[:200]}")
                    data = await resp.json()
        except NluRequestError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise NluRequestError(f"NLU request failed: {e}") from e

        try:
            parsed = QueryResponse.model_validate(data)
        except ValidationError as e:
            raise NluRequestError(f"Malformed NLU response: {e}") from e

        if parsed.status.code >= 400:
            detail = parsed.status.errorDetails or parsed.status.errorType
            raise NluRequestError(f"NLU error {parsed.status.code}: {detail}")
        if parsed.result is None:
            raise NluRequestError("NLU response has no result")

        result = parsed.result
        _log(f"[nlu] {text[:60]!r} -> {result.action or '(no action)'}")
        return NluResult(
            action=result.action,
            parameters=dict(result.parameters),
            speech=result.fulfillment.speech,
        )
