import httpx
import msgspec
import pytest

from musicbot.logging import setup_logging
from musicbot.telegram.client import HttpBotClient, TelegramClient
from musicbot.telegram.errors import (
    PermanentTransportError,
    TelegramRetryAfter,
    TransientTransportError,
)

TOKEN = "123:abcDEF_ghij"


@pytest.mark.anyio
async def test_telegram_429_no_retry() -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(
            429,
            json={
                "ok": False,
                "description": "retry",
                "parameters": {"retry_after": 3},
            },
            request=request,
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        api = HttpBotClient(TOKEN, http_client=client)
        with pytest.raises(TelegramRetryAfter) as exc:
            await api._post("sendMessage", {"chat_id": 1, "text": "hi"})
    finally:
        await client.aclose()

    assert exc.value.retry_after == 3
    assert len(calls) == 1


@pytest.mark.anyio
async def test_telegram_429_defaults_retry_after_on_bad_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, text="nope", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        api = HttpBotClient(TOKEN, http_client=client)
        with pytest.raises(TelegramRetryAfter) as exc:
            await api._post("sendMessage", {"chat_id": 1, "text": "hi"})
    finally:
        await client.aclose()

    assert exc.value.retry_after == 5.0


@pytest.mark.anyio
async def test_telegram_429_post_form() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429,
            json={"ok": False, "parameters": {"retry_after": 2}},
            request=request,
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        api = HttpBotClient(TOKEN, http_client=client)
        with pytest.raises(TelegramRetryAfter) as exc:
            await api._post_form(
                "sendDocument",
                {"chat_id": "1"},
                files={"document": ("song.lrc", b"[00:01.00]hi")},
            )
    finally:
        await client.aclose()

    assert exc.value.retry_after == 2


@pytest.mark.anyio
async def test_no_token_in_logs_on_http_error(
    capsys: pytest.CaptureFixture[str],
) -> None:
    setup_logging(debug=True)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(f"cannot reach {request.url}", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        api = HttpBotClient(TOKEN, http_client=client)
        with pytest.raises(TransientTransportError) as exc:
            await api._post("getUpdates", {"timeout": 1})
    finally:
        await client.aclose()

    out = capsys.readouterr().out
    assert TOKEN not in out
    assert TOKEN not in str(exc.value)
    assert "bot[REDACTED]" in out


@pytest.mark.anyio
async def test_server_errors_are_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        api = HttpBotClient(TOKEN, http_client=client)
        with pytest.raises(TransientTransportError):
            await api._post("getUpdates", {"timeout": 1})
    finally:
        await client.aclose()


@pytest.mark.anyio
async def test_api_rejection_is_permanent() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "ok": False,
                "error_code": 400,
                "description": "Bad Request: message is not modified",
            },
            request=request,
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        api = HttpBotClient(TOKEN, http_client=client)
        with pytest.raises(PermanentTransportError) as exc:
            await api._post("editMessageText", {"chat_id": 1})
    finally:
        await client.aclose()

    assert exc.value.error_code == 400
    assert exc.value.message_not_modified


def test_empty_token_is_rejected() -> None:
    with pytest.raises(ValueError):
        HttpBotClient("")


@pytest.mark.anyio
async def test_get_updates_decodes_and_skips_invalid_items() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(msgspec.json.decode(request.content))
        return httpx.Response(
            200,
            json={
                "ok": True,
                "result": [
                    {
                        "update_id": 10,
                        "message": {
                            "message_id": 1,
                            "chat": {"id": 42, "type": "private"},
                            "from": {"id": 7, "is_bot": False, "first_name": "a"},
                            "text": "netease:1",
                        },
                    },
                    {"update_id": "broken"},
                    {
                        "update_id": 11,
                        "callback_query": {
                            "id": "cb",
                            "from": {"id": 7, "is_bot": False, "first_name": "a"},
                            "data": "music netease 1 high",
                        },
                    },
                ],
            },
            request=request,
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        bot = TelegramClient(TOKEN, http_client=client)
        updates = await bot.get_updates(9, timeout_s=1, allowed_updates=["message"])
    finally:
        await client.aclose()

    assert [update.update_id for update in updates] == [10, 11]
    assert updates[0].message is not None
    assert updates[0].message.text == "netease:1"
    assert updates[0].message.from_ is not None
    assert updates[0].message.from_.id == 7
    assert updates[1].callback_query is not None
    assert updates[1].callback_query.data == "music netease 1 high"
    assert seen == [{"timeout": 1, "offset": 9, "allowed_updates": ["message"]}]


@pytest.mark.anyio
async def test_send_message_payload() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(msgspec.json.decode(request.content))
        return httpx.Response(
            200,
            json={
                "ok": True,
                "result": {
                    "message_id": 5,
                    "chat": {"id": 42, "type": "private"},
                    "text": "hi",
                },
            },
            request=request,
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        bot = TelegramClient(TOKEN, http_client=client)
        msg = await bot.send_message(42, "hi", reply_to_message_id=3, parse_mode="HTML")
    finally:
        await client.aclose()

    assert msg is not None
    assert msg.message_id == 5
    assert seen == [
        {
            "chat_id": 42,
            "text": "hi",
            "reply_parameters": {
                "message_id": 3,
                "allow_sending_without_reply": True,
            },
            "parse_mode": "HTML",
        }
    ]


@pytest.mark.anyio
async def test_send_document_uses_multipart_upload() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "ok": True,
                "result": {"message_id": 6, "chat": {"id": 42, "type": "private"}},
            },
            request=request,
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        bot = TelegramClient(TOKEN, http_client=client)
        msg = await bot.send_document(
            42, "singer - song.lrc", b"[00:01.50]hello", caption="<b>song</b>"
        )
    finally:
        await client.aclose()

    assert msg is not None
    assert seen[0].url.path.endswith("/sendDocument")
    assert seen[0].headers["content-type"].startswith("multipart/form-data")
    body = seen[0].content
    assert b'filename="singer - song.lrc"' in body
    assert b"[00:01.50]hello" in body
    assert b"<b>song</b>" in body
