from __future__ import annotations

from typing import Any, Protocol

import httpx
import msgspec

from ..logging import get_logger, redact_token
from .api_schemas import Message, Update, User
from .errors import (
    PermanentTransportError,
    TelegramRetryAfter,
    TransientTransportError,
)

logger = get_logger(__name__)

_DEFAULT_RETRY_AFTER = 5.0
_API_BASE = "https://api.telegram.org"


class BotClient(Protocol):
    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        reply_to_message_id: int | None = None,
        parse_mode: str | None = None,
        reply_markup: dict[str, Any] | None = None,
    ) -> Message | None: ...

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        *,
        parse_mode: str | None = None,
        reply_markup: dict[str, Any] | None = None,
    ) -> Message | None: ...

    async def delete_message(self, chat_id: int, message_id: int) -> bool: ...

    async def send_document(
        self,
        chat_id: int,
        filename: str,
        content: bytes,
        *,
        caption: str | None = None,
        parse_mode: str | None = None,
        reply_to_message_id: int | None = None,
    ) -> Message | None: ...

    async def answer_callback_query(
        self,
        callback_query_id: str,
        *,
        text: str | None = None,
        show_alert: bool = False,
    ) -> bool: ...

    async def answer_inline_query(
        self,
        inline_query_id: str,
        results: list[dict[str, Any]],
        *,
        cache_time: int = 0,
    ) -> bool: ...


def _retry_after_from(response: httpx.Response) -> float:
    try:
        payload = response.json()
    except ValueError:
        return _DEFAULT_RETRY_AFTER
    if not isinstance(payload, dict):
        return _DEFAULT_RETRY_AFTER
    params = payload.get("parameters")
    if isinstance(params, dict):
        value = params.get("retry_after")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return _DEFAULT_RETRY_AFTER


class HttpBotClient:
    """Raw Bot API calls over httpx.

    Every failure is raised as a transport error: 429 as TelegramRetryAfter,
    network and 5xx failures as TransientTransportError, any other rejected
    call as PermanentTransportError.
    """

    def __init__(
        self,
        token: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = 120.0,
        base_url: str = _API_BASE,
    ) -> None:
        if not token:
            raise ValueError("bot token must be non-empty")
        self._base = f"{base_url.rstrip('/')}/bot{token}"
        self._client = http_client or httpx.AsyncClient(timeout=timeout_s)
        self._owns_client = http_client is None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post(self, method: str, payload: dict[str, Any]) -> Any:
        return await self._request(method, json=payload)

    async def _post_form(
        self,
        method: str,
        data: dict[str, Any],
        *,
        files: dict[str, tuple[str, bytes]],
    ) -> Any:
        return await self._request(method, data=data, files=files)

    async def _request(self, method: str, **kwargs: Any) -> Any:
        url = f"{self._base}/{method}"
        logger.debug("telegram.request", method=method, url=url)
        try:
            response = await self._client.post(url, **kwargs)
        except httpx.HTTPError as exc:
            error = redact_token(str(exc))
            logger.warning(
                "telegram.network_error",
                method=method,
                url=url,
                error=error,
                error_type=exc.__class__.__name__,
            )
            raise TransientTransportError(f"{method}: {error}") from exc
        return self._parse(method, response)

    def _parse(self, method: str, response: httpx.Response) -> Any:
        if response.status_code == 429:
            retry_after = _retry_after_from(response)
            logger.info(
                "telegram.rate_limited", method=method, retry_after=retry_after
            )
            raise TelegramRetryAfter(retry_after)
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            logger.warning(
                "telegram.invalid_payload",
                method=method,
                status=response.status_code,
            )
            if response.status_code >= 500:
                raise TransientTransportError(
                    f"{method}: HTTP {response.status_code}"
                )
            raise PermanentTransportError(
                method,
                error_code=response.status_code,
                description="invalid response payload",
            )
        if payload.get("ok"):
            return payload.get("result")
        error_code = payload.get("error_code")
        if not isinstance(error_code, int):
            error_code = response.status_code
        description = str(payload.get("description") or "")
        if error_code == 429:
            raise TelegramRetryAfter(_retry_after_from(response), description)
        if error_code >= 500:
            raise TransientTransportError(f"{method}: {description or error_code}")
        logger.debug(
            "telegram.api_error",
            method=method,
            error_code=error_code,
            description=description,
        )
        raise PermanentTransportError(
            method, error_code=error_code, description=description
        )


def _decode_message(result: Any) -> Message | None:
    if not isinstance(result, dict):
        return None
    try:
        return msgspec.convert(result, Message)
    except msgspec.ValidationError as exc:
        logger.info("telegram.decode_failed", type="message", error=str(exc))
        return None


class TelegramClient:
    """Typed Bot API methods used by the router and handlers."""

    def __init__(
        self,
        token: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = 120.0,
    ) -> None:
        self._api = HttpBotClient(token, http_client=http_client, timeout_s=timeout_s)

    async def close(self) -> None:
        await self._api.close()

    async def get_me(self) -> User | None:
        result = await self._api._post("getMe", {})
        try:
            return msgspec.convert(result, User)
        except msgspec.ValidationError as exc:
            logger.info("telegram.decode_failed", type="user", error=str(exc))
            return None

    async def get_updates(
        self,
        offset: int | None,
        *,
        timeout_s: int = 50,
        allowed_updates: list[str] | None = None,
    ) -> list[Update]:
        payload: dict[str, Any] = {"timeout": timeout_s}
        if offset is not None:
            payload["offset"] = offset
        if allowed_updates is not None:
            payload["allowed_updates"] = allowed_updates
        result = await self._api._post("getUpdates", payload)
        if not isinstance(result, list):
            return []
        updates: list[Update] = []
        for item in result:
            try:
                updates.append(msgspec.convert(item, Update))
            except msgspec.ValidationError as exc:
                logger.info("telegram.decode_failed", type="update", error=str(exc))
        return updates

    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        reply_to_message_id: int | None = None,
        parse_mode: str | None = None,
        reply_markup: dict[str, Any] | None = None,
    ) -> Message | None:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_to_message_id is not None:
            payload["reply_parameters"] = {
                "message_id": reply_to_message_id,
                "allow_sending_without_reply": True,
            }
        if parse_mode is not None:
            payload["parse_mode"] = parse_mode
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        return _decode_message(await self._api._post("sendMessage", payload))

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        *,
        parse_mode: str | None = None,
        reply_markup: dict[str, Any] | None = None,
    ) -> Message | None:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
        }
        if parse_mode is not None:
            payload["parse_mode"] = parse_mode
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        return _decode_message(await self._api._post("editMessageText", payload))

    async def delete_message(self, chat_id: int, message_id: int) -> bool:
        result = await self._api._post(
            "deleteMessage", {"chat_id": chat_id, "message_id": message_id}
        )
        return bool(result)

    async def send_document(
        self,
        chat_id: int,
        filename: str,
        content: bytes,
        *,
        caption: str | None = None,
        parse_mode: str | None = None,
        reply_to_message_id: int | None = None,
    ) -> Message | None:
        data: dict[str, Any] = {"chat_id": str(chat_id)}
        if caption:
            data["caption"] = caption
        if parse_mode is not None:
            data["parse_mode"] = parse_mode
        if reply_to_message_id is not None:
            data["reply_parameters"] = msgspec.json.encode(
                {"message_id": reply_to_message_id, "allow_sending_without_reply": True}
            ).decode()
        result = await self._api._post_form(
            "sendDocument", data, files={"document": (filename, content)}
        )
        return _decode_message(result)

    async def answer_callback_query(
        self,
        callback_query_id: str,
        *,
        text: str | None = None,
        show_alert: bool = False,
    ) -> bool:
        payload: dict[str, Any] = {"callback_query_id": callback_query_id}
        if text is not None:
            payload["text"] = text
        if show_alert:
            payload["show_alert"] = True
        return bool(await self._api._post("answerCallbackQuery", payload))

    async def answer_inline_query(
        self,
        inline_query_id: str,
        results: list[dict[str, Any]],
        *,
        cache_time: int = 0,
    ) -> bool:
        payload = {
            "inline_query_id": inline_query_id,
            "results": results,
            "cache_time": cache_time,
        }
        return bool(await self._api._post("answerInlineQuery", payload))

    async def set_my_commands(self, commands: list[dict[str, str]]) -> bool:
        return bool(await self._api._post("setMyCommands", {"commands": commands}))
