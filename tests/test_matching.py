import asyncio

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from models.like import InteractionStatus
from models.match import Match
from services.interactions import record_interaction
from services.matching import (
    AlreadyExists,
    Created,
    canonicalize,
    find_match,
    get_or_create_match,
    insert_match,
    on_liked,
)
from tests.conftest import FakeConnection


async def _count_matches(session) -> int:
    return (await session.execute(select(func.count(Match.id)))).scalar_one()


def test_canonicalize_is_order_independent():
    assert canonicalize(9, 3) == (3, 9)
    assert canonicalize(3, 9) == (3, 9)


def test_canonicalize_rejects_same_user():
    with pytest.raises(HTTPException) as exc:
        canonicalize(4, 4)

    assert exc.value.status_code == 400


async def test_one_sided_like_creates_no_match(db, make_user, notifier):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await record_interaction(db, alice.id, bob.id, InteractionStatus.liked)

    detection = await on_liked(db, alice.id, bob.id, notifier)

    assert detection.created is False
    assert detection.match is None
    assert await _count_matches(db) == 0


async def test_mutual_like_creates_match_and_notifies_both(db, make_user, registry, notifier):
    alice = await make_user("alice", name="Alice")
    bob = await make_user("bob", name="Bob")
    alice_conn, bob_conn = FakeConnection("a"), FakeConnection("b")
    registry.register(alice.id, alice_conn)
    registry.register(bob.id, bob_conn)

    await record_interaction(db, alice.id, bob.id, InteractionStatus.liked)
    first = await on_liked(db, alice.id, bob.id, notifier)
    await record_interaction(db, bob.id, alice.id, InteractionStatus.liked)
    second = await on_liked(db, bob.id, alice.id, notifier)
    await notifier.drain()

    assert first.created is False
    assert second.created is True
    assert second.match.user_ids == canonicalize(alice.id, bob.id)

    [to_alice] = alice_conn.of("newMatch")
    [to_bob] = bob_conn.of("newMatch")
    assert to_alice["matchId"] == second.match.id
    assert to_alice["otherUser"] == {
        "id": bob.id,
        "displayName": "Bob",
        "pictureRef": "https://cdn.example.com/bob.jpg",
    }
    assert to_alice["message"] == "You have a new match with Bob!"
    assert to_bob["otherUser"]["id"] == alice.id
    assert to_bob["otherUser"]["displayName"] == "Alice"


async def test_repeated_detection_does_not_renotify(db, make_user, registry, notifier):
    alice = await make_user("alice")
    bob = await make_user("bob")
    alice_conn = FakeConnection("a")
    registry.register(alice.id, alice_conn)
    await record_interaction(db, alice.id, bob.id, InteractionStatus.liked)
    await record_interaction(db, bob.id, alice.id, InteractionStatus.liked)

    created = await on_liked(db, bob.id, alice.id, notifier)
    again = await on_liked(db, alice.id, bob.id, notifier)
    await notifier.drain()

    assert created.created is True
    assert again.created is False
    assert again.match.id == created.match.id
    assert len(alice_conn.of("newMatch")) == 1


async def test_dislike_is_terminal(db, make_user, notifier):
    alice = await make_user("alice")
    bob = await make_user("bob")

    await record_interaction(db, alice.id, bob.id, InteractionStatus.disliked)
    await record_interaction(db, bob.id, alice.id, InteractionStatus.liked)
    detection = await on_liked(db, bob.id, alice.id, notifier)

    assert detection.created is False
    assert detection.match is None
    assert await _count_matches(db) == 0


async def test_concurrent_detection_converges_on_one_match(session_factory, make_user, registry, notifier):
    alice = await make_user("alice")
    bob = await make_user("bob")
    alice_conn, bob_conn = FakeConnection("a"), FakeConnection("b")
    registry.register(alice.id, alice_conn)
    registry.register(bob.id, bob_conn)
    async with session_factory() as session:
        await record_interaction(session, alice.id, bob.id, InteractionStatus.liked)
        await record_interaction(session, bob.id, alice.id, InteractionStatus.liked)

    async def detect(liker, liked):
        async with session_factory() as session:
            return await on_liked(session, liker, liked, notifier)

    results = await asyncio.gather(
        detect(alice.id, bob.id),
        detect(bob.id, alice.id),
        detect(alice.id, bob.id),
    )
    await notifier.drain()

    assert sum(1 for r in results if r.created) == 1
    assert len({r.match.id for r in results}) == 1
    assert len(alice_conn.of("newMatch")) == 1
    assert len(bob_conn.of("newMatch")) == 1
    async with session_factory() as session:
        assert await _count_matches(session) == 1


async def test_insert_falls_back_to_existing_match(session_factory, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    async with session_factory() as session:
        winner = await insert_match(session, alice.id, bob.id)
    # второй писатель не видел матч при проверке и сразу вставляет
    async with session_factory() as session:
        loser = await insert_match(session, bob.id, alice.id)

    assert isinstance(winner, Created)
    assert isinstance(loser, AlreadyExists)
    assert loser.match.id == winner.match.id


async def test_get_or_create_returns_existing(db, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    first = await get_or_create_match(db, alice.id, bob.id)
    second = await get_or_create_match(db, bob.id, alice.id)

    assert isinstance(first, Created)
    assert isinstance(second, AlreadyExists)
    assert (await find_match(db, bob.id, alice.id)).id == first.match.id


async def test_offline_participants_still_get_durable_match(db, make_user, notifier):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await record_interaction(db, alice.id, bob.id, InteractionStatus.liked)
    await record_interaction(db, bob.id, alice.id, InteractionStatus.liked)

    detection = await on_liked(db, bob.id, alice.id, notifier)
    await notifier.drain()

    assert detection.created is True
    assert await find_match(db, alice.id, bob.id) is not None


async def test_broken_connection_does_not_undo_match(db, make_user, registry, notifier):
    alice = await make_user("alice")
    bob = await make_user("bob")
    registry.register(alice.id, FakeConnection("a", fail=True))
    await record_interaction(db, alice.id, bob.id, InteractionStatus.liked)
    await record_interaction(db, bob.id, alice.id, InteractionStatus.liked)

    detection = await on_liked(db, bob.id, alice.id, notifier)
    await notifier.drain()

    assert detection.created is True
    assert await _count_matches(db) == 1


async def test_user_without_profile_is_announced_by_username(db, make_user, registry, notifier):
    alice = await make_user("alice")
    carol = await make_user("carol", with_profile=False)
    alice_conn = FakeConnection("a")
    registry.register(alice.id, alice_conn)
    await record_interaction(db, carol.id, alice.id, InteractionStatus.liked)
    await record_interaction(db, alice.id, carol.id, InteractionStatus.liked)

    await on_liked(db, alice.id, carol.id, notifier)
    await notifier.drain()

    [event] = alice_conn.of("newMatch")
    assert event["otherUser"] == {"id": carol.id, "displayName": "carol", "pictureRef": None}
