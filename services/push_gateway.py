"""Expo push API adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests

from core.errors import TransportError
from core.log import get_logger
from core.settings import PUSH, PushSettings


DEVICE_NOT_REGISTERED = "DeviceNotRegistered"


@dataclass
class PushMessage:
    to: str
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)
    sound: str = "default"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "to": self.to,
            "sound": self.sound,
            "title": self.title,
            "body": self.body,
            "data": self.data or {},
        }


@dataclass
class PushTicket:
    token: str
    status: str
    id: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def device_not_registered(self) -> bool:
        return self.status == "error" and self.error == DEVICE_NOT_REGISTERED

    @classmethod
    def from_payload(cls, token: str, payload: Dict[str, Any]) -> "PushTicket":
        details = payload.get("details") or {}
        return cls(
            token=token,
            status=str(payload.get("status") or "error"),
            id=payload.get("id"),
            message=payload.get("message"),
            error=details.get("error") if isinstance(details, dict) else None,
        )


class PushGateway(Protocol):
    def send(self, messages: Sequence[PushMessage]) -> List[PushTicket]:
        """Deliver ``messages`` and return one ticket per message, in order."""


class ExpoPushGateway:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        settings: PushSettings = PUSH,
    ) -> None:
        self.session = session or requests.Session()
        self.settings = settings
        self.logger = get_logger("push")

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.settings.access_token:
            headers["Authorization"] = f"Bearer {self.settings.access_token}"
        return headers

    def send(self, messages: Sequence[PushMessage]) -> List[PushTicket]:
        tickets: List[PushTicket] = []
        size = max(1, self.settings.max_batch_size)
        for start in range(0, len(messages), size):
            tickets.extend(self._send_chunk(messages[start:start + size]))
        return tickets

    def _send_chunk(self, chunk: Sequence[PushMessage]) -> List[PushTicket]:
        try:
            response = self.session.post(
                self.settings.endpoint,
                json=[message.to_payload() for message in chunk],
                headers=self._headers(),
                timeout=self.settings.timeout_sec,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise TransportError(f"Push request failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"Push gateway returned invalid JSON: {exc}") from exc

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            errors = payload.get("errors") if isinstance(payload, dict) else None
            raise TransportError(f"Push gateway rejected the batch: {errors or payload!r}")
        if len(data) != len(chunk):
            raise TransportError(
                f"Push gateway returned {len(data)} tickets for {len(chunk)} messages"
            )

        tickets = [PushTicket.from_payload(message.to, ticket) for message, ticket in zip(chunk, data)]
        for ticket in tickets:
            if not ticket.ok:
                self.logger.warning(
                    "Push to %s failed: %s (%s)", ticket.token, ticket.message, ticket.error
                )
        return tickets


__all__ = [
    "DEVICE_NOT_REGISTERED",
    "ExpoPushGateway",
    "PushGateway",
    "PushMessage",
    "PushTicket",
]
