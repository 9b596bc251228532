"""Telegram messaging transport."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

import httpx
import structlog

from .config import Settings

LOGGER = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InboundMessage:
    """A text message received from the group chat."""

    id: str
    text: str
    sender: str
    sender_name: str


class Transport(Protocol):
    async def send_text(self, text: str) -> None: ...

    async def send_image(self, path: str, caption: str = "") -> None: ...


class TelegramTransport:
    """Sends to and polls the configured Telegram group chat."""

    def __init__(self, settings: Settings, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        if not settings.telegram_chat_id:
            raise ValueError("TELEGRAM_CHAT_ID must be set to use Telegram")
        self._endpoint = settings.telegram_api_endpoint
        self._chat_id = str(settings.telegram_chat_id)
        self._transport = transport
        self._offset: Optional[int] = None

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._endpoint,
            timeout=timeout,
            transport=self._transport,
        )

    async def send_text(self, text: str) -> None:
        """Send a plain text message to the group."""
        payload = {
            "chat_id": self._chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        LOGGER.info("telegram.send.start", preview=text[:50])
        async with self._client(15.0) as client:
            response = await client.post("/sendMessage", json=payload)
        self._check(response, "sendMessage")

    async def send_image(self, path: str, caption: str = "") -> None:
        """Upload a screenshot to the group."""
        image = Path(path)
        LOGGER.info("telegram.send_image.start", path=path)
        content = await asyncio.to_thread(image.read_bytes)
        async with self._client(30.0) as client:
            response = await client.post(
                "/sendPhoto",
                data={"chat_id": self._chat_id, "caption": caption},
                files={"photo": (image.name, content, "image/png")},
            )
        self._check(response, "sendPhoto")

    async def fetch_updates(self, timeout: int = 30) -> list[InboundMessage]:
        """Long-poll ``getUpdates`` and return new text messages from the group."""
        params: dict[str, Any] = {"timeout": timeout, "allowed_updates": '["message"]'}
        if self._offset is not None:
            params["offset"] = self._offset

        async with self._client(timeout + 10.0) as client:
            response = await client.get("/getUpdates", params=params)
        self._check(response, "getUpdates")

        messages: list[InboundMessage] = []
        for update in response.json().get("result", []):
            self._offset = int(update["update_id"]) + 1
            message = update.get("message") or {}
            text = message.get("text")
            chat_id = str((message.get("chat") or {}).get("id", ""))
            if not text or chat_id != self._chat_id:
                continue
            sender = message.get("from") or {}
            if sender.get("is_bot"):
                continue
            sender_id = str(sender.get("id", ""))
            messages.append(
                InboundMessage(
                    id=str(message.get("message_id", "")),
                    text=text,
                    sender=sender_id,
                    sender_name=sender.get("first_name") or sender.get("username") or sender_id,
                )
            )
        return messages

    @staticmethod
    def _check(response: httpx.Response, method: str) -> None:
        if response.is_success:
            LOGGER.info("telegram.request.success", method=method)
            return
        LOGGER.error("telegram.request.failed", method=method, status_code=response.status_code, body=response.text)
        raise RuntimeError(f"Telegram {method} failed with {response.status_code}: {response.text}")
