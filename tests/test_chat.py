import logging

import httpx
import pytest

from geothermal.chat import (
    CHAT_PAGE_URL,
    LOGON_URL,
    MESSAGE_URL,
    POLL_URL,
    Chat,
    ChatSession,
    acquire_access_token,
    decode_message,
)
from geothermal.errors import ChatStatusError, DecodeError, HttpStatusError, NoAuthToken
from geothermal.ids import user_id
from geothermal.transport.http import HttpClient
from geothermal.models.chat import (
    PersonastateMessage,
    SaytextMessage,
    TypingMessage,
    UnrecognizedMessage,
)

from conftest import form, json_response

TOKEN = "0123456789abcdef0123456789abcdef"
CHAT_PAGE = f"""
<script type="text/javascript">
    g_sessionID = "f00dcafe";
    WebAPI = new CWebAPI( 'https://api.steampowered.com/', 'https://api.steampowered.com/', "{TOKEN}" );
</script>
"""


def saytext(text: str = "hi", account: int = 22202, type: str = "saytext") -> dict:
    return {"type": type, "timestamp": 1000, "utc_timestamp": 1400000000, "accountid_from": account, "text": text}


def make_chat(http, message: int = 10) -> Chat:
    return Chat(http, ChatSession(steamid=76561197960287930, umqid="1234567890", access_token=TOKEN, message=message))


@pytest.mark.asyncio
async def test_acquire_access_token(steam, http):
    steam.on("GET", CHAT_PAGE_URL, httpx.Response(200, text=CHAT_PAGE))
    assert await acquire_access_token(http) == TOKEN


@pytest.mark.asyncio
async def test_acquire_access_token_logged_out(steam, http):
    steam.on("GET", CHAT_PAGE_URL, httpx.Response(200, text="<html>Sign in</html>"))
    with pytest.raises(NoAuthToken):
        await acquire_access_token(http)


@pytest.mark.asyncio
async def test_open(steam, http):
    steam.on("GET", CHAT_PAGE_URL, httpx.Response(200, text=CHAT_PAGE))
    steam.on("POST", LOGON_URL, json_response({
        "steamid": "76561197960287930",
        "error": "OK",
        "umqid": "9137214862399838374",
        "timestamp": 79227937,
        "utc_timestamp": 1400000000,
        "message": 42,
        "push": 0,
    }))

    chat = await Chat.open(http)

    assert form(steam.calls(LOGON_URL)[0]) == {"access_token": TOKEN}
    s = chat.session
    assert s.steamid == 76561197960287930
    assert s.umqid == "9137214862399838374"
    assert s.message == 42
    assert s.pollid == 0
    assert s.access_token == TOKEN


@pytest.mark.asyncio
async def test_open_rejected(steam, http):
    steam.on("GET", CHAT_PAGE_URL, httpx.Response(200, text=CHAT_PAGE))
    steam.on("POST", LOGON_URL, json_response({"error": "Not Logged On"}))

    with pytest.raises(ChatStatusError) as exc:
        await Chat.open(http)
    assert exc.value.status == "Not Logged On"


@pytest.mark.asyncio
async def test_poll_sends_cursor_and_long_poll_parameters(steam, http):
    steam.on("POST", POLL_URL, json_response({"error": "OK", "messages": [], "messagelast": 11}))
    chat = make_chat(http, message=10)
    chat.session.pollid = 3

    await chat.poll()

    assert form(steam.calls(POLL_URL)[0]) == {
        "umqid": "1234567890",
        "message": "10",
        "pollid": "3",
        "sectimeout": "35",
        "secidletime": "0",
        "use_accountids": "1",
        "access_token": TOKEN,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("entries", [
    [saytext("hello"), {"type": "frobnicate", "timestamp": 1, "accountid_from": 5}],
    [{"type": "frobnicate", "timestamp": 1, "accountid_from": 5}, saytext("hello")],
])
async def test_poll_skips_unknown_types(steam, http, caplog, entries):
    steam.on("POST", POLL_URL, json_response({"error": "OK", "messages": entries, "messagelast": 12}))
    chat = make_chat(http)

    with caplog.at_level(logging.WARNING, logger="geothermal.chat"):
        messages = await chat.poll()

    assert len(messages) == 1
    assert isinstance(messages[0], SaytextMessage)
    assert messages[0].text == "hello"
    assert [u.type for u in chat.session.unrecognized] == ["frobnicate"]
    assert "frobnicate" in caplog.text


@pytest.mark.asyncio
@pytest.mark.parametrize("odd", [{"type": 7}, {"type": None}, {"timestamp": 1, "accountid_from": 5}, "garbage"])
async def test_poll_keeps_batch_when_type_tag_is_missing_or_not_a_string(steam, http, odd):
    steam.on("POST", POLL_URL, json_response({"error": "OK", "messages": [saytext("hello"), odd], "messagelast": 12}))
    chat = make_chat(http)

    messages = await chat.poll()

    assert [m.text for m in messages] == ["hello"]
    assert [u.raw for u in chat.session.unrecognized] == [odd]
    assert chat.session.message == 12


@pytest.mark.asyncio
async def test_poll_decodes_every_variant(steam, http):
    steam.on("POST", POLL_URL, json_response({
        "error": "OK",
        "messagelast": 20,
        "messages": [
            saytext("mine", type="my_saytext"),
            {"type": "typing", "timestamp": 2, "utc_timestamp": 3, "accountid_from": 9},
            {"type": "personastate", "timestamp": 4, "accountid_from": 9, "persona_name": "gaben", "persona_state": 1},
            {"type": "leftconversation", "timestamp": 5, "accountid_from": 9},
        ],
    }))

    self_text, typing, persona, left = await make_chat(http).poll()

    assert isinstance(self_text, SaytextMessage) and self_text.is_self
    assert isinstance(typing, TypingMessage)
    assert typing.steamid_from == user_id(9)
    assert isinstance(persona, PersonastateMessage)
    assert (persona.persona_name, persona.persona_state) == ("gaben", 1)
    assert left.type == "leftconversation"
    assert left.timestamp == 5


@pytest.mark.asyncio
async def test_poll_advances_counters_on_success(steam, http):
    steam.on("POST", POLL_URL, json_response({"error": "OK", "messages": [saytext()], "messagelast": 17}))
    chat = make_chat(http, message=10)

    await chat.poll()

    assert chat.session.pollid == 1
    assert chat.session.message == 17


@pytest.mark.asyncio
async def test_poll_advances_counters_before_status_error(steam, http):
    steam.on("POST", POLL_URL, json_response({"error": "Not Logged On", "messages": [saytext()], "messagelast": 14}))
    chat = make_chat(http, message=10)

    with pytest.raises(ChatStatusError) as exc:
        await chat.poll()

    assert exc.value.status == "Not Logged On"
    assert chat.session.pollid == 1
    assert chat.session.message == 14


@pytest.mark.asyncio
async def test_poll_timeout_keeps_cursor(steam, http):
    steam.on("POST", POLL_URL, json_response({"pollid": 0, "sectimeout": 35, "error": "Timeout"}))
    chat = make_chat(http, message=10)

    with pytest.raises(ChatStatusError):
        await chat.poll()

    assert chat.session.pollid == 1
    assert chat.session.message == 10


@pytest.mark.asyncio
async def test_poll_http_error_leaves_counters(steam, http):
    steam.on("POST", POLL_URL, httpx.Response(503, text="Service Unavailable"))
    chat = make_chat(http, message=10)

    with pytest.raises(HttpStatusError):
        await chat.poll()

    assert chat.session.pollid == 0
    assert chat.session.message == 10


@pytest.mark.asyncio
async def test_poll_transport_error_propagates_unchanged():
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    chat = make_chat(HttpClient(transport=httpx.MockTransport(boom)))

    with pytest.raises(httpx.ReadTimeout):
        await chat.poll()
    assert chat.session.pollid == 0


@pytest.mark.asyncio
async def test_handlers_dispatch_by_type(steam, http):
    steam.on("POST", POLL_URL, json_response({
        "error": "OK",
        "messagelast": 3,
        "messages": [saytext("a"), {"type": "typing", "accountid_from": 1}, saytext("b")],
    }))
    chat = make_chat(http)
    texts: list[str] = []
    everything = []
    chat.add_message_handler(lambda m: texts.append(m.text), types=(SaytextMessage,))
    remove = chat.add_message_handler(everything.append)

    await chat.poll()
    assert texts == ["a", "b"]
    assert len(everything) == 3

    remove()
    await chat.poll()
    assert len(everything) == 3
    assert texts == ["a", "b", "a", "b"]


@pytest.mark.asyncio
async def test_failing_handler_does_not_drop_the_batch(steam, http, caplog):
    steam.on("POST", POLL_URL, json_response({
        "error": "OK", "messagelast": 3, "messages": [saytext("a"), saytext("b")],
    }))
    chat = make_chat(http)
    seen: list[str] = []

    def explode(m):
        raise RuntimeError("boom")

    chat.add_message_handler(explode)
    chat.add_message_handler(lambda m: seen.append(m.text))

    with caplog.at_level(logging.ERROR, logger="geothermal.chat"):
        messages = await chat.poll()

    assert [m.text for m in messages] == ["a", "b"]
    assert seen == ["a", "b"]
    assert "boom" in caplog.text


@pytest.mark.asyncio
async def test_listen_skips_timeouts(steam, http):
    steam.on(
        "POST", POLL_URL,
        json_response({"error": "Timeout"}),
        json_response({"error": "OK", "messages": [saytext("late")], "messagelast": 11}),
    )
    chat = make_chat(http)

    agen = chat.listen()
    m = await agen.__anext__()
    await agen.aclose()

    assert m.text == "late"
    assert chat.session.pollid == 2


@pytest.mark.asyncio
async def test_say(steam, http):
    steam.on("POST", MESSAGE_URL, json_response({"error": "OK"}))
    chat = make_chat(http, message=10)

    await chat.say(user_id(22202), "hello there")

    assert form(steam.calls(MESSAGE_URL)[0]) == {
        "umqid": "1234567890",
        "access_token": TOKEN,
        "text": "hello there",
        "type": "saytext",
        "steamid_dst": "76561197960287930",
    }
    assert chat.session.pollid == 0
    assert chat.session.message == 10


@pytest.mark.asyncio
async def test_say_rejected(steam, http):
    steam.on("POST", MESSAGE_URL, json_response({"error": "Not Logged On"}))
    chat = make_chat(http)

    with pytest.raises(ChatStatusError) as exc:
        await chat.say(user_id(22202), "hello")

    assert "Not Logged On" in str(exc.value)
    assert len(steam.calls(MESSAGE_URL)) == 1
    assert steam.calls(POLL_URL) == []


def test_decode_message_rejects_malformed_known_entries():
    with pytest.raises(DecodeError):
        decode_message({"type": "saytext", "timestamp": "soon"})
    with pytest.raises(DecodeError):
        decode_message({"type": "personastate", "persona_state": "away"})


def test_decode_message_flags_untagged_entries():
    assert isinstance(decode_message({"type": "emote"}), UnrecognizedMessage)
    assert decode_message({"timestamp": 1}).type is None
    assert decode_message(["not", "an", "object"]).raw == ["not", "an", "object"]
