from typing import Any, Dict, Protocol

from .models import DispatchResponse


class IEventSender(Protocol):
    """
    Interface for delivering one event payload to the remote endpoint.
    """
    async def post(self, url: str, payload: Dict[str, Any]) -> DispatchResponse:
        """
        POST payload as JSON. Raises TransportError when no response arrives.
        """
        ...
