"""Interfaces for the external systems the bot talks to."""

from typing import Any, Awaitable, Dict, List, Protocol, Sequence, runtime_checkable

from relaybot.domain.models import Distribution, NluResult, ResponseMessage


@runtime_checkable
class NluPort(Protocol):
    """Interface for the natural-language-understanding service."""

    async def query(self, text: str, session_id: str) -> NluResult: ...


@runtime_checkable
class DistributionPort(Protocol):
    """Interface for resolving distribution expressions."""

    async def resolve_expression(self, expression: str) -> Distribution: ...


@runtime_checkable
class DirectoryPort(Protocol):
    """Interface for the user/tag directory."""

    async def patch_user(self, user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]: ...
    async def patch_tag(self, tag_id: str, fields: Dict[str, Any]) -> Dict[str, Any]: ...
    async def get_users(self, user_ids: Sequence[str]) -> List[Dict[str, Any]]: ...
    async def get_devices(self) -> List[Dict[str, Any]]: ...


@runtime_checkable
class SenderPort(Protocol):
    """Interface for delivering replies."""

    async def send(self, message: ResponseMessage) -> None: ...


@runtime_checkable
class KeyChangeEvent(Protocol):
    """Identity key change raised by the transport; must be accepted."""

    addr: str

    def accept(self) -> Awaitable[None]: ...
