"""MessageNormalizer 测试"""

import pytest

from commands import MessageNormalizer, extract_text
from commands.content import MessageContent, WebMessage

GROUP = "120363000000000001@g.us"


def text_message(text: str, chat: str = "20000@s.whatsapp.net", **key) -> dict:
    return {
        "key": {"remoteJid": chat, "fromMe": False, "id": "ABC", **key},
        "message": {"conversation": text},
        "pushName": "Tester",
    }


@pytest.fixture
def normalizer() -> MessageNormalizer:
    return MessageNormalizer([".", "!"])


def test_attached_prefix(normalizer):
    inv = normalizer.normalize(text_message(".ping hello world"))
    assert inv.prefix == "."
    assert inv.command == "ping"
    assert inv.args == "hello world"
    assert inv.raw_args == "hello world"
    assert inv.is_command


def test_detached_prefix_and_irregular_whitespace(normalizer):
    inv = normalizer.normalize(text_message(". ping   hello\nworld"))
    assert inv.prefix == "."
    assert inv.command == "ping"
    assert inv.args == "hello world"
    assert inv.raw_args == "hello\nworld"


def test_no_prefix(normalizer):
    inv = normalizer.normalize(text_message("ping hello"))
    assert inv.prefix == ""
    assert inv.command == ""
    assert inv.args == ""
    assert not inv.is_command


def test_command_is_lowercased(normalizer):
    inv = normalizer.normalize(text_message("!PING Foo"))
    assert inv.prefix == "!"
    assert inv.command == "ping"
    assert inv.args == "Foo"


def test_prefix_only(normalizer):
    prefix, command, args, raw_args = normalizer.tokenize(".")
    assert (prefix, command, args, raw_args) == (".", "", "", "")


def test_private_chat_sender(normalizer):
    inv = normalizer.normalize(text_message(".ping", remoteJidAlt="555@lid"))
    assert not inv.is_group
    assert inv.sender == "20000@s.whatsapp.net"
    assert inv.sender_alt == "555@lid"
    assert inv.push_name == "Tester"
    assert inv.id == "ABC"


def test_group_chat_sender(normalizer):
    raw = text_message(".ping", chat=GROUP, participant="80000@lid", participantAlt="20000@s.whatsapp.net")
    inv = normalizer.normalize(raw)
    assert inv.is_group
    assert inv.chat == GROUP
    assert inv.sender == "80000@lid"
    assert inv.sender_alt == "20000@s.whatsapp.net"


def test_text_precedence():
    content = MessageContent.model_validate(
        {"extendedTextMessage": {"text": "extended"}, "conversation": "plain"}
    )
    assert extract_text(content) == "extended"

    caption = MessageContent.model_validate({"imageMessage": {"caption": ".sticker", "mimetype": "image/png"}})
    assert extract_text(caption) == ".sticker"

    buttons = MessageContent.model_validate({"buttonsMessage": {"contentText": "pick one"}})
    assert extract_text(buttons) == "pick one"

    template = MessageContent.model_validate(
        {"templateMessage": {"hydratedTemplate": {"hydratedContentText": "from template"}}}
    )
    assert extract_text(template) == "from template"

    listing = MessageContent.model_validate({"listMessage": {"description": "menu"}})
    assert extract_text(listing) == "menu"


def test_edited_text_is_extracted():
    content = MessageContent.model_validate(
        {"protocolMessage": {"type": 14, "editedMessage": {"conversation": ".ping edited"}}}
    )
    assert extract_text(content) == ".ping edited"


def test_wrappers_are_unwrapped(normalizer):
    raw = text_message("")
    raw["message"] = {
        "ephemeralMessage": {
            "message": {"viewOnceMessageV2": {"message": {"imageMessage": {"caption": ".s", "viewOnce": True}}}}
        }
    }
    inv = normalizer.normalize(raw)
    assert inv.type == "imageMessage"
    assert inv.image
    assert inv.command == "s"


def test_unwrap_depth_is_bounded():
    nested: dict = {"conversation": ".deep"}
    for _ in range(7):
        nested = {"ephemeralMessage": {"message": nested}}
    content = MessageContent.model_validate(nested).normalized()
    assert content.kind.value == "ephemeralMessage"


def test_quoted_message(normalizer):
    raw = text_message("")
    raw["message"] = {
        "extendedTextMessage": {
            "text": ".q",
            "contextInfo": {
                "stanzaId": "QUOTED1",
                "participant": "30000@s.whatsapp.net",
                "quotedMessage": {"videoMessage": {"caption": "clip", "viewOnce": True}},
                "mentionedJid": ["30000@s.whatsapp.net"],
            },
        }
    }
    inv = normalizer.normalize(raw)
    assert inv.mentions == ("30000@s.whatsapp.net",)
    quoted = inv.quoted
    assert quoted is not None
    assert quoted.id == "QUOTED1"
    assert quoted.sender == "30000@s.whatsapp.net"
    assert quoted.chat == "20000@s.whatsapp.net"
    assert quoted.type == "videoMessage"
    assert quoted.text == "clip"
    assert quoted.media.video and quoted.media.any
    assert quoted.view_once


def test_malformed_message_yields_empty_invocation(normalizer):
    inv = normalizer.normalize({"key": "not a key", "message": 42})
    assert inv.text == ""
    assert inv.command == ""
    assert inv.chat is None


def test_empty_message(normalizer):
    inv = normalizer.normalize(WebMessage())
    assert inv.text == ""
    assert inv.type is None


def test_raw_args_with_non_ascii_before_command(normalizer):
    # "İ".lower() 会变成两个字符
    prefix, command, args, raw_args = normalizer.tokenize(".ping İİİ ping abc")
    assert command == "ping"
    assert args == "İİİ ping abc"
    assert raw_args == "abc"

    _, _, _, raw_args = normalizer.tokenize(".PING Ärger  über")
    assert raw_args == "Ärger  über"
