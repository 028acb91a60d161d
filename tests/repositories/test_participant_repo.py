"""Tests for ParticipantRepository."""

from uuid import uuid4

import pytest

from src.db.turso import TursoClient, UniqueConstraintError
from src.models.participant import Participant
from src.repositories.participant_repo import ParticipantRepository


def make_participant(**overrides) -> Participant:
    values = {
        "first_name": "Alan",
        "last_name": "Turing",
        "email": f"alan.{uuid4().hex[:6]}@example.com",
    }
    values.update(overrides)
    return Participant(**values)


@pytest.mark.asyncio
async def test_initialize_creates_tables(db_client: TursoClient):
    repo = ParticipantRepository(db_client)
    await repo.initialize()

    result = await db_client.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    names = {row[0] for row in result.rows}
    assert {"participants", "event_memberships"} <= names


@pytest.mark.asyncio
async def test_create_and_find(participant_repo: ParticipantRepository):
    participant = make_participant(phone="+441234567890", age=41)
    await participant_repo.create(participant)

    found = await participant_repo.find_by_id(participant.id)

    assert found is not None
    assert found.email == participant.email
    assert found.phone == "+441234567890"
    assert found.age == 41
    assert found.event_ids == []


@pytest.mark.asyncio
async def test_find_by_email_is_case_insensitive(participant_repo: ParticipantRepository):
    participant = make_participant(email="alan@bletchley.uk")
    await participant_repo.create(participant)

    found = await participant_repo.find_by_email("Alan@Bletchley.UK")

    assert found is not None
    assert found.id == participant.id


@pytest.mark.asyncio
async def test_create_with_membership(participant_repo: ParticipantRepository):
    event_id = uuid4()
    participant = make_participant()

    created = await participant_repo.create_with_membership(participant, event_id)

    assert created.event_ids == [event_id]
    found = await participant_repo.find_by_id(participant.id)
    assert found.event_ids == [event_id]
    assert await participant_repo.count_for_event(event_id) == 1


@pytest.mark.asyncio
async def test_membership_add_and_remove_are_idempotent(participant_repo: ParticipantRepository):
    participant = make_participant()
    await participant_repo.create(participant)
    event_id = uuid4()

    assert await participant_repo.add_event_membership(participant.id, event_id)
    assert not await participant_repo.add_event_membership(participant.id, event_id)
    assert await participant_repo.count_for_event(event_id) == 1

    assert await participant_repo.remove_event_membership(participant.id, event_id)
    assert not await participant_repo.remove_event_membership(participant.id, event_id)
    assert await participant_repo.count_for_event(event_id) == 0


@pytest.mark.asyncio
async def test_find_by_event_id_and_ids(participant_repo: ParticipantRepository):
    first_event, second_event = uuid4(), uuid4()
    alice = make_participant(first_name="Alice")
    bob = make_participant(first_name="Bob")
    carol = make_participant(first_name="Carol")
    for participant in (alice, bob, carol):
        await participant_repo.create(participant)
    await participant_repo.add_event_membership(alice.id, first_event)
    await participant_repo.add_event_membership(bob.id, first_event)
    await participant_repo.add_event_membership(bob.id, second_event)
    await participant_repo.add_event_membership(carol.id, second_event)

    members = await participant_repo.find_by_event_id(first_event)
    assert {p.id for p in members} == {alice.id, bob.id}

    bob_found = next(p for p in members if p.id == bob.id)
    assert set(bob_found.event_ids) == {first_event, second_event}

    either = await participant_repo.find_by_event_ids([first_event, second_event])
    assert {p.id for p in either} == {alice.id, bob.id, carol.id}
    assert await participant_repo.find_by_event_ids([]) == []


@pytest.mark.asyncio
async def test_search_by_name(participant_repo: ParticipantRepository):
    await participant_repo.create(make_participant(first_name="Grace", last_name="Hopper"))
    await participant_repo.create(make_participant(first_name="Alan", last_name="Kay"))

    assert [p.last_name for p in await participant_repo.search_by_name("HOP")] == ["Hopper"]
    assert [p.last_name for p in await participant_repo.search_by_name("grace hop")] == ["Hopper"]
    assert await participant_repo.search_by_name("nobody") == []


@pytest.mark.asyncio
async def test_search_by_name_matches_wildcards_literally(participant_repo: ParticipantRepository):
    await participant_repo.create(make_participant(first_name="a_b", last_name="Smith"))
    await participant_repo.create(make_participant(first_name="axb", last_name="Jones"))
    await participant_repo.create(make_participant(first_name="100%", last_name="Sure"))

    assert [p.last_name for p in await participant_repo.search_by_name("a_b")] == ["Smith"]
    assert [p.last_name for p in await participant_repo.search_by_name("100%")] == ["Sure"]
    assert [p.last_name for p in await participant_repo.search_by_name("%")] == ["Sure"]


@pytest.mark.asyncio
async def test_update(participant_repo: ParticipantRepository):
    participant = make_participant()
    await participant_repo.create(participant)

    updated = await participant_repo.update(participant.id, {"organization": "NPL", "age": 42})

    assert updated.organization == "NPL"
    assert updated.age == 42
    assert await participant_repo.update(uuid4(), {"age": 1}) is None
    with pytest.raises(ValueError):
        await participant_repo.update(participant.id, {"event_ids": []})


@pytest.mark.asyncio
async def test_delete_cascading_removes_memberships(participant_repo: ParticipantRepository):
    participant = make_participant()
    event_id = uuid4()
    await participant_repo.create_with_membership(participant, event_id)

    assert await participant_repo.delete_cascading(participant.id)
    assert await participant_repo.find_by_id(participant.id) is None
    assert await participant_repo.count_for_event(event_id) == 0
    assert not await participant_repo.delete_cascading(participant.id)


@pytest.mark.asyncio
async def test_count_by_event(participant_repo: ParticipantRepository):
    busy, quiet = uuid4(), uuid4()
    for _ in range(3):
        await participant_repo.create_with_membership(make_participant(), busy)
    await participant_repo.create_with_membership(make_participant(), quiet)

    assert await participant_repo.count_by_event() == {busy: 3, quiet: 1}


@pytest.mark.asyncio
async def test_duplicate_email_raises_unique_constraint(participant_repo: ParticipantRepository):
    await participant_repo.create(make_participant(email="dup@example.com"))

    with pytest.raises(UniqueConstraintError):
        await participant_repo.create(make_participant(email="dup@example.com"))

    assert len(await participant_repo.find_all()) == 1


@pytest.mark.asyncio
async def test_membership_not_added_for_missing_participant(
    participant_repo: ParticipantRepository,
):
    event_id = uuid4()

    assert not await participant_repo.add_event_membership(uuid4(), event_id)
    assert await participant_repo.count_for_event(event_id) == 0


@pytest.mark.asyncio
async def test_orphan_delete_keeps_participant_with_memberships(
    participant_repo: ParticipantRepository,
    db_client: TursoClient,
):
    member = make_participant()
    loner = make_participant()
    await participant_repo.create_with_membership(member, uuid4())
    await participant_repo.create(loner)

    await db_client.execute_batch(
        [
            participant_repo.orphan_delete_statement(member.id),
            participant_repo.orphan_delete_statement(loner.id),
        ]
    )

    assert await participant_repo.find_by_id(member.id) is not None
    assert await participant_repo.find_by_id(loner.id) is None
