"""
Protocols (Interfaces) for the upload collaborators.

The orchestrator depends on these, not on the concrete HTTP implementations.
"""
from typing import Any, Dict, Protocol, runtime_checkable

from .models import ApplyResult, SigningContext, TransferDescriptor


@runtime_checkable
class IControlPlaneClient(Protocol):
    """Interface for the VOD control-plane API."""

    async def apply_upload(self, signing: SigningContext, params: Dict[str, Any]) -> Dict[str, Any]:
        """Request storage destinations. Returns the decoded response body."""
        ...

    async def commit_upload(self, signing: SigningContext, params: Dict[str, Any]) -> Dict[str, Any]:
        """Finalize an upload. Returns the decoded response body."""
        ...


@runtime_checkable
class ITransferSession(Protocol):
    """Interface for an object-storage transfer session."""

    async def upload_object(self, descriptor: TransferDescriptor) -> None:
        """Transfer one local file. Raises on failure."""
        ...

    async def shutdown(self) -> None:
        """Release the session."""
        ...

    async def __aenter__(self) -> "ITransferSession":
        ...

    async def __aexit__(self, *args) -> None:
        ...


class ITransferSessionFactory(Protocol):
    """Builds a transfer session for the destinations granted by apply."""

    def __call__(
        self,
        apply_result: ApplyResult,
        signing: SigningContext,
    ) -> ITransferSession:
        ...


