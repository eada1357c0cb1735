"""
Unit tests for services.conversation_gateway module.
Tests lifecycle transitions and the ended-is-terminal invariant.
"""
import uuid

import pytest
from app.core.errors import NotFound, PersistenceFailure
from app.models.conversation import Conversation, ConversationStatus
from app.models.transcript import TranscriptTurn
from app.services.conversation_gateway import ConversationGateway
from app.services.speaker_mapper import MappedTurn, SpeakerRole


pytestmark = [pytest.mark.asyncio, pytest.mark.usefixtures("db")]


@pytest.fixture
def gateway():
    return ConversationGateway()


async def test_create_starts_pending_with_invite_code(gateway, create_user):
    me, _ = await create_user()

    created = await gateway.create(me.id, "Park")

    conv = await Conversation.get(id=created.id)
    assert conv.status == ConversationStatus.PENDING
    assert conv.location == "Park"
    assert conv.invite_code == created.invite_code
    assert len(created.invite_code) == 4 and created.invite_code.isdigit()


async def test_link_and_attach(gateway, create_user):
    me, _ = await create_user()
    friend, _ = await create_user()
    created = await gateway.create(me.id, "Park")
    ref = str(uuid.uuid4())

    await gateway.link_participant(created.id, friend.id)
    await gateway.attach_audio(created.id, ref)

    conv = await Conversation.get(id=created.id)
    assert conv.status == ConversationStatus.ACTIVE
    assert conv.participant_id == friend.id
    assert str(conv.audio_storage_id) == ref


async def test_mark_solo_activates_without_participant(gateway, create_user):
    me, _ = await create_user()
    created = await gateway.create(me.id, "Home")

    await gateway.mark_solo(created.id)

    conv = await Conversation.get(id=created.id)
    assert conv.status == ConversationStatus.ACTIVE
    assert conv.participant_id is None


async def test_save_transcript_writes_everything_and_ends(gateway, create_user):
    me, _ = await create_user()
    friend, _ = await create_user()
    created = await gateway.create(me.id, "Park")
    await gateway.link_participant(created.id, friend.id)
    turns = [
        MappedTurn(str(me.id), SpeakerRole.INITIATOR, "Hi"),
        MappedTurn(str(friend.id), SpeakerRole.PARTICIPANT, "Hello"),
    ]

    await gateway.save_transcript(created.id, turns, ["a"], ["b"], "Ana", "Ben", "Summary.")

    conv = await Conversation.get(id=created.id)
    assert conv.status == ConversationStatus.ENDED
    assert conv.ended_at is not None
    assert (conv.initiator_facts, conv.participant_facts) == (["a"], ["b"])
    assert conv.summary == "Summary."
    rows = await TranscriptTurn.filter(conversation_id=conv.id).order_by("seq")
    assert [(r.seq, r.user_id, r.text) for r in rows] == [(1, me.id, "Hi"), (2, friend.id, "Hello")]


async def test_save_transcript_with_no_turns(gateway, create_user):
    me, _ = await create_user()
    created = await gateway.create(me.id, "Home")
    await gateway.mark_solo(created.id)

    await gateway.save_transcript(created.id, [], [], [], "Ana", None, "Conversation imported from mobile app.")

    conv = await Conversation.get(id=created.id)
    assert conv.status == ConversationStatus.ENDED
    assert await TranscriptTurn.filter(conversation_id=conv.id).count() == 0


async def test_ended_conversation_rejects_transcript(gateway, create_user):
    me, _ = await create_user()
    created = await gateway.create(me.id, "Home")
    await gateway.set_status(created.id, ConversationStatus.ENDED)

    with pytest.raises(PersistenceFailure):
        await gateway.save_transcript(
            created.id, [MappedTurn(str(me.id), SpeakerRole.INITIATOR, "late")], [], [], "Ana", None, "s"
        )
    with pytest.raises(PersistenceFailure):
        await gateway.attach_audio(created.id, str(uuid.uuid4()))
    assert await TranscriptTurn.filter(conversation_id=created.id).count() == 0


async def test_set_status_ended_is_idempotent_and_terminal(gateway, create_user):
    me, _ = await create_user()
    created = await gateway.create(me.id, "Home")

    await gateway.set_status(created.id, ConversationStatus.ENDED)
    await gateway.set_status(created.id, "ended")

    with pytest.raises(PersistenceFailure):
        await gateway.set_status(created.id, ConversationStatus.ACTIVE)


async def test_missing_and_malformed_ids(gateway):
    with pytest.raises(NotFound):
        await gateway.get(uuid.uuid4())
    with pytest.raises(NotFound):
        await gateway.link_participant("nope", uuid.uuid4())
