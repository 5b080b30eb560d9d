"""
Tests for ContestantRepository.
"""

from repositories.contestant_repository import ContestantRepository
from repositories.vote_repository import VoteRepository


class TestContestantCounters:
    """Counter updates happen in single statements."""

    async def test_increment_only_active(self, db_session, create_contestant) -> None:
        active = await create_contestant("Contestant A", votes=2)
        evicted = await create_contestant("Evicted", votes=2, is_active=False)
        repo = ContestantRepository(db_session)

        assert await repo.increment_votes(active.id) is True
        assert await repo.increment_votes(evicted.id) is False
        assert await repo.increment_votes("missing") is False
        assert await repo.get_votes(active.id) == 3
        assert await repo.get_votes(evicted.id) == 2

    async def test_decrement_stops_at_zero(self, db_session, create_contestant) -> None:
        contestant = await create_contestant("Contestant A", votes=1)
        repo = ContestantRepository(db_session)

        assert await repo.decrement_votes(contestant.id) is True
        assert await repo.decrement_votes(contestant.id) is False
        assert await repo.get_votes(contestant.id) == 0

    async def test_totals(self, db_session, create_contestant) -> None:
        await create_contestant("Contestant A", votes=3)
        await create_contestant("Contestant B", votes=4)
        await create_contestant("Evicted", votes=10, is_active=False)
        repo = ContestantRepository(db_session)

        assert await repo.total_active_votes() == 7
        assert await repo.total_votes() == 17
        assert await repo.count_active() == 2
        assert [c.name for c in await repo.list_active()] == ["Contestant B", "Contestant A"]

    async def test_update_ignores_votes(self, db_session, create_contestant) -> None:
        contestant = await create_contestant("Contestant A", votes=5)

        updated = await ContestantRepository(db_session).update(
            contestant.id, {"votes": 500, "name": "Renamed"}
        )

        assert updated.name == "Renamed"
        assert updated.votes == 5


class TestContestantDelete:
    """Deletion and the vote ledger."""

    async def test_delete_keeps_ledger_rows_as_invalid(self, db_session, create_contestant) -> None:
        """Deleting a contestant leaves the voter's quota spent."""
        contestant = await create_contestant("Contestant A")
        votes = VoteRepository(db_session)
        await votes.record_vote(
            contestant_id=contestant.id,
            voter_fingerprint="abc",
            day_key="2026-01-01-abc",
            admission_key="2026-01-01-abc",
        )
        await db_session.commit()

        assert await ContestantRepository(db_session).delete(contestant.id) is True
        await db_session.commit()

        assert await votes.count_for_day("2026-01-01-abc") == 1
        assert await votes.exists_for_day("2026-01-01-abc", contestant.id) is True
        assert await votes.count_valid() == 0
