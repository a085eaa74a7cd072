"""Tests for domain/agent.py — BotBrain pipeline tests.

No transport needed — tests use mock ports only.
"""

import json
import random

import pytest

from relaybot.domain.agent import BotBrain
from relaybot.domain.distribution import DistributionCache
from relaybot.domain.errors import DirectoryError, NluRequestError, ResolutionError
from relaybot.domain.handlers import NameHandlers
from relaybot.domain.identity import IdentityStore
from relaybot.domain.models import BotIdentity, Distribution, NluResult
from relaybot.domain.router import IntentRouter
from relaybot.ports.inbound import BodyPart, IncomingMessage, parse_envelope

BOT_ID = "bot-1"
SENDER_ID = "user-1"

USER = {
    "id": BOT_ID,
    "first_name": "Ada",
    "middle_name": "",
    "last_name": "Bot",
    "tag": {"id": "tag-1", "slug": "adabot"},
    "org": {"id": "org-1", "slug": "acme"},
}


# --- Mock Ports ---


class MockNLU:
    """Mock NluPort implementation."""

    def __init__(self, action="input.unknown", parameters=None, speech="", error=None):
        self.result = NluResult(action=action, parameters=parameters or {}, speech=speech)
        self.error = error
        self.calls = []

    async def query(self, text, session_id):
        self.calls.append((text, session_id))
        if self.error:
            raise self.error
        return self.result


class MockResolver:
    """Mock DistributionPort implementation."""

    def __init__(self, members=(BOT_ID, SENDER_ID), error=None):
        self.members = frozenset(members)
        self.error = error
        self.calls = []

    async def resolve_expression(self, expression):
        self.calls.append(expression)
        if self.error:
            raise self.error
        return Distribution(expression=expression, members=self.members)


class MockDirectory:
    """Mock DirectoryPort implementation."""

    def __init__(self, error=None):
        self.user = dict(USER)
        self.error = error
        self.user_patches = []

    async def patch_user(self, user_id, fields):
        self.user_patches.append(dict(fields))
        if self.error:
            raise self.error
        self.user.update(fields)
        return dict(self.user)

    async def patch_tag(self, tag_id, fields):
        if self.error:
            raise self.error
        self.user["tag"] = {"id": tag_id, **fields}
        return dict(self.user["tag"])

    async def get_users(self, user_ids):
        return [dict(self.user)]

    async def get_devices(self):
        return []


class MockSender:
    """Mock SenderPort implementation."""

    def __init__(self, error=None):
        self.sent = []
        self.error = error

    async def send(self, message):
        if self.error:
            raise self.error
        self.sent.append(message)


class MockKeyChange:
    def __init__(self, addr="peer-1"):
        self.addr = addr
        self.accepted = False

    async def accept(self):
        self.accepted = True


# --- Helpers ---


def _make_brain(nlu=None, resolver=None, directory=None, sender=None):
    directory = directory or MockDirectory()
    identity = IdentityStore(directory, BotIdentity.from_dict(USER))
    handlers = NameHandlers(identity, rng=random.Random(0))
    resolver = resolver or MockResolver()
    nlu = nlu or MockNLU()
    sender = sender or MockSender()
    brain = BotBrain(
        identity=identity,
        distributions=DistributionCache(resolver),
        nlu=nlu,
        router=IntentRouter(handlers.capabilities()),
        sender=sender,
    )
    return brain, nlu, sender, directory


def _make_msg(text="hello", source=SENDER_ID, thread_id="thread-1", parts=None):
    body = parts if parts is not None else [
        BodyPart(type="text/html", value=f"<p>{text}</p>"),
        BodyPart(type="text/plain", value=text),
    ]
    return IncomingMessage(
        source=source,
        distribution_expression="(<bot>+<user>)",
        thread_id=thread_id,
        body=body,
    )


# --- Tests ---


class TestGate:
    @pytest.mark.asyncio
    async def test_no_text_is_skipped(self):
        brain, nlu, sender, _ = _make_brain()
        msg = _make_msg(parts=[BodyPart(type="text/html", value="<p>x</p>")])

        assert await brain.on_message(msg) is None
        assert nlu.calls == []
        assert sender.sent == []
        assert brain.stats()["ignored"] == 1

    @pytest.mark.asyncio
    async def test_null_text_value_is_skipped(self):
        brain, nlu, sender, _ = _make_brain()
        body = json.dumps([{
            "threadId": "thread-1",
            "distribution": {"expression": "(<bot>+<user>)"},
            "data": {"body": [{"type": "text/plain", "value": None}]},
        }])

        assert await brain.on_message(parse_envelope(SENDER_ID, body)) is None
        assert nlu.calls == []
        assert sender.sent == []
        assert brain.stats()["ignored"] == 1

    @pytest.mark.asyncio
    async def test_group_message_not_for_me(self):
        resolver = MockResolver(members=(BOT_ID, SENDER_ID, "user-2"))
        brain, nlu, sender, _ = _make_brain(resolver=resolver)

        assert await brain.on_message(_make_msg("lunch?")) is None
        assert nlu.calls == []
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_group_message_naming_bot(self):
        resolver = MockResolver(members=(BOT_ID, SENDER_ID, "user-2"))
        nlu = MockNLU(action="smalltalk.greetings", speech="Hi!")
        brain, _, sender, _ = _make_brain(nlu=nlu, resolver=resolver)

        resp = await brain.on_message(_make_msg("hi adabot"))

        assert resp is not None
        assert sender.sent == [resp]

    @pytest.mark.asyncio
    async def test_resolution_failure_drops(self):
        resolver = MockResolver(error=ResolutionError("bad tag"))
        brain, nlu, sender, _ = _make_brain(resolver=resolver)

        assert await brain.on_message(_make_msg()) is None
        assert nlu.calls == []
        assert sender.sent == []
        assert brain.stats()["dropped"] == 1

    @pytest.mark.asyncio
    async def test_distribution_resolved_once(self):
        resolver = MockResolver()
        brain, _, _, _ = _make_brain(resolver=resolver, nlu=MockNLU(speech="ok"))

        await brain.on_message(_make_msg())
        await brain.on_message(_make_msg())

        assert resolver.calls == ["(<bot>+<user>)"]


class TestPipeline:
    @pytest.mark.asyncio
    async def test_nlu_gets_text_and_thread(self):
        nlu = MockNLU(speech="ok")
        brain, _, _, _ = _make_brain(nlu=nlu)

        await brain.on_message(_make_msg("what's your name", thread_id="t-42"))

        assert nlu.calls == [("what's your name", "t-42")]

    @pytest.mark.asyncio
    async def test_nlu_failure_sends_nothing(self):
        nlu = MockNLU(error=NluRequestError("connection reset"))
        brain, _, sender, _ = _make_brain(nlu=nlu)

        assert await brain.on_message(_make_msg()) is None
        assert sender.sent == []
        assert brain.stats()["dropped"] == 1

    @pytest.mark.asyncio
    async def test_unknown_intent_keeps_speech(self):
        nlu = MockNLU(action="smalltalk.greetings", speech="Hello there")
        brain, _, sender, _ = _make_brain(nlu=nlu)

        resp = await brain.on_message(_make_msg())

        assert resp.text == "Hello there"
        assert sender.sent == [resp]

    @pytest.mark.asyncio
    async def test_unknown_intent_without_speech(self):
        nlu = MockNLU(action="unknown.intent", speech="")
        brain, _, sender, _ = _make_brain(nlu=nlu)

        resp = await brain.on_message(_make_msg())

        assert resp.text == 'I have nothing to do with: "unknown.intent"'
        assert len(sender.sent) == 1

    @pytest.mark.asyncio
    async def test_handler_reply(self):
        nlu = MockNLU(action="name.agent.get", parameters={"type": "tag"}, speech="default")
        brain, _, sender, _ = _make_brain(nlu=nlu)

        resp = await brain.on_message(_make_msg())

        assert resp.text == "@adabot:acme"
        assert resp.thread_id == "thread-1"
        assert resp.distribution.members == frozenset({BOT_ID, SENDER_ID})

    @pytest.mark.asyncio
    async def test_handler_none_keeps_speech(self):
        nlu = MockNLU(action="name.agent.get", parameters={"type": "nickname"}, speech="Hmm?")
        brain, _, _, _ = _make_brain(nlu=nlu)

        resp = await brain.on_message(_make_msg())

        assert resp.text == "Hmm?"

    @pytest.mark.asyncio
    async def test_change_updates_identity(self):
        nlu = MockNLU(action="name.agent.change", parameters={"name": "Grace Hopper"})
        brain, _, _, directory = _make_brain(nlu=nlu)

        resp = await brain.on_message(_make_msg())

        assert directory.user_patches == [{"first_name": "Grace", "last_name": "Hopper"}]
        assert brain.identity.current.first_name == "Grace"
        assert resp.text == "Okay, I'm now Grace Hopper"

    @pytest.mark.asyncio
    async def test_handler_failure_apologizes(self):
        nlu = MockNLU(action="name.agent.change", parameters={"name": "Grace"})
        directory = MockDirectory(error=DirectoryError("HTTP 403: forbidden"))
        brain, _, sender, _ = _make_brain(nlu=nlu, directory=directory)

        resp = await brain.on_message(_make_msg())

        assert "HTTP 403: forbidden" in resp.text
        assert "<pre>HTTP 403: forbidden</pre>" in resp.html
        assert sender.sent == [resp]
        assert brain.stats()["handler_errors"] == 1
        assert brain.identity.current.first_name == "Ada"

    @pytest.mark.asyncio
    async def test_unknown_change_type_confirms(self):
        nlu = MockNLU(action="name.agent.change", parameters={"type": "nickname", "name": "Zed"})
        brain, _, sender, directory = _make_brain(nlu=nlu)

        resp = await brain.on_message(_make_msg())

        assert directory.user_patches == [{}]
        assert resp.text == "Okay, I'm now Ada Bot"
        assert resp.html is None
        assert brain.stats()["handler_errors"] == 0

    @pytest.mark.asyncio
    async def test_handler_distribution_mapping_is_sent(self):
        nlu = MockNLU(action="custom.reply")
        brain, _, sender, _ = _make_brain(nlu=nlu)
        brain.router = IntentRouter([
            ("HandleCustomReply", lambda params: {"text": "moved", "distribution": {"userids": [SENDER_ID]}}),
        ])

        resp = await brain.on_message(_make_msg())

        assert sender.sent == [resp]
        assert resp.as_payload()["distribution"]["userids"] == [SENDER_ID]
        assert resp.as_payload()["distribution"]["expression"] == "(<bot>+<user>)"

    @pytest.mark.asyncio
    async def test_handler_bad_distribution_apologizes(self):
        nlu = MockNLU(action="custom.reply")
        brain, _, sender, _ = _make_brain(nlu=nlu)
        brain.router = IntentRouter([
            ("HandleCustomReply", lambda params: {"distribution": 42}),
        ])

        resp = await brain.on_message(_make_msg())

        assert resp.text.startswith("Afraid I can't do that boss...")
        assert sender.sent == [resp]
        assert brain.stats()["handler_errors"] == 1

    @pytest.mark.asyncio
    async def test_send_failure_is_contained(self):
        nlu = MockNLU(speech="ok")
        brain, _, _, _ = _make_brain(nlu=nlu, sender=MockSender(error=RuntimeError("socket closed")))

        assert await brain.on_message(_make_msg()) is None
        assert brain.stats()["dropped"] == 1

    @pytest.mark.asyncio
    async def test_exactly_one_reply_per_message(self):
        nlu = MockNLU(action="name.agent.get", parameters={"type": "first name"})
        brain, _, sender, _ = _make_brain(nlu=nlu)

        for _ in range(3):
            await brain.on_message(_make_msg())

        assert len(sender.sent) == 3
        assert brain.stats()["answered"] == 3


class TestWiring:
    @pytest.mark.asyncio
    async def test_no_sender_discards(self):
        brain, _, _, _ = _make_brain(nlu=MockNLU(speech="ok"))
        brain._sender = None

        assert await brain.on_message(_make_msg()) is None

    @pytest.mark.asyncio
    async def test_wire_sets_sender(self):
        brain, _, _, _ = _make_brain(nlu=MockNLU(speech="ok"))
        sender = MockSender()
        brain.wire(sender)

        await brain.on_message(_make_msg())

        assert len(sender.sent) == 1

    def test_name_is_handle(self):
        brain, _, _, _ = _make_brain()
        assert brain.name == "@adabot:acme"


class TestKeyChange:
    @pytest.mark.asyncio
    async def test_accepts(self):
        brain, _, _, _ = _make_brain()
        event = MockKeyChange()

        await brain.on_keychange(event)

        assert event.accepted is True
