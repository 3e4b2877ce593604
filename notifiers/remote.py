# notifiers/remote.py
from core.errors import AlertDispatchError, TransportError
from models.signal import SignalSnapshot
from modules.rest_client import SignalRestClient
from notifiers.base import BaseNotifier


class RemoteRelayNotifier(BaseNotifier):
    """Lets the signal service deliver the alert (``POST /send-telegram``).

    The service formats its own message, so only the snapshot is sent.
    """

    def __init__(self, rest_client: SignalRestClient):
        self.rest_client = rest_client

    async def send(self, text: str, snapshot: SignalSnapshot) -> bool:
        try:
            return await self.rest_client.send_telegram(snapshot)
        except TransportError as exc:
            raise AlertDispatchError(f"Alert relay failed: {exc}") from exc
