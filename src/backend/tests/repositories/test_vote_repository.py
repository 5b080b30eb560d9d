"""
Tests for VoteRepository.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from repositories.vote_repository import VoteRepository, is_unique_violation


def _integrity_error(orig: object) -> IntegrityError:
    return IntegrityError("INSERT INTO vote_records ...", {}, orig)


@pytest.mark.unit
class TestIsUniqueViolation:
    """Test is_unique_violation."""

    def test_postgres_sqlstate(self) -> None:
        orig = MagicMock(sqlstate="23505")
        assert is_unique_violation(_integrity_error(orig)) is True

    def test_postgres_foreign_key(self) -> None:
        orig = MagicMock(sqlstate="23503")
        assert is_unique_violation(_integrity_error(orig)) is False

    def test_sqlite_message(self) -> None:
        orig = Exception("UNIQUE constraint failed: vote_records.admission_key, vote_records.contestant_id")
        assert is_unique_violation(_integrity_error(orig)) is True

    def test_sqlite_foreign_key_message(self) -> None:
        assert is_unique_violation(_integrity_error(Exception("FOREIGN KEY constraint failed"))) is False


@pytest.mark.unit
class TestRecordVoteWithMockSession:
    """Test constraint handling without a database."""

    async def test_unique_violation_returns_none(self, mock_session: AsyncMock) -> None:
        mock_session.flush.side_effect = _integrity_error(Exception("UNIQUE constraint failed"))

        result = await VoteRepository(mock_session).record_vote(
            contestant_id="c1",
            voter_fingerprint="abc",
            day_key="2026-01-01-abc",
            admission_key="2026-01-01-abc",
        )

        assert result is None
        mock_session.rollback.assert_awaited_once()

    async def test_other_integrity_errors_propagate(self, mock_session: AsyncMock) -> None:
        mock_session.flush.side_effect = _integrity_error(Exception("NOT NULL constraint failed"))

        with pytest.raises(IntegrityError):
            await VoteRepository(mock_session).record_vote(
                contestant_id="c1",
                voter_fingerprint="abc",
                day_key="2026-01-01-abc",
                admission_key="2026-01-01-abc",
            )


@pytest.mark.unit
class TestLockDay:
    """Test the per-day lock taken before quota accounting."""

    async def test_postgres_takes_advisory_lock(self, mock_session: AsyncMock) -> None:
        mock_session.bind = MagicMock()
        mock_session.bind.dialect.name = "postgresql"

        await VoteRepository(mock_session).lock_day("2026-01-01-abc")

        mock_session.execute.assert_awaited_once()
        assert "pg_advisory_xact_lock" in str(mock_session.execute.await_args.args[0])

    async def test_sqlite_is_a_no_op(self, mock_session: AsyncMock) -> None:
        mock_session.bind = MagicMock()
        mock_session.bind.dialect.name = "sqlite"

        await VoteRepository(mock_session).lock_day("2026-01-01-abc")

        mock_session.execute.assert_not_awaited()


class TestVoteRepository:
    """Test VoteRepository against a real database."""

    async def test_record_and_query_day(self, db_session, create_contestant) -> None:
        a = await create_contestant("Contestant A")
        b = await create_contestant("Contestant B")
        repo = VoteRepository(db_session)

        for contestant in (a, b):
            await repo.record_vote(
                contestant_id=contestant.id,
                voter_fingerprint="abc",
                day_key="2026-01-01-abc",
                admission_key="2026-01-01-abc",
            )

        assert await repo.count_for_day("2026-01-01-abc") == 2
        assert await repo.count_for_day("2026-01-02-abc") == 0
        assert await repo.exists_for_day("2026-01-01-abc", a.id) is True
        assert {name for _, name in await repo.list_for_day("2026-01-01-abc")} == {
            "Contestant A",
            "Contestant B",
        }

    async def test_same_admission_key_twice_is_rejected(self, db_session, create_contestant) -> None:
        a = await create_contestant("Contestant A")
        repo = VoteRepository(db_session)
        fields = {
            "contestant_id": a.id,
            "voter_fingerprint": "abc",
            "day_key": "2026-01-01-abc",
            "admission_key": "2026-01-01-abc",
        }

        assert await repo.record_vote(**fields) is not None
        await db_session.commit()

        assert await repo.record_vote(**fields) is None
        assert await repo.count_valid() == 1

    async def test_distinct_admission_keys_share_a_day(self, db_session, create_contestant) -> None:
        a = await create_contestant("Contestant A")
        repo = VoteRepository(db_session)

        for request_id in ("r1", "r2"):
            await repo.record_vote(
                contestant_id=a.id,
                voter_fingerprint="abc",
                day_key="2026-01-01-abc",
                admission_key=f"2026-01-01-abc#{request_id}",
            )

        assert await repo.count_for_day("2026-01-01-abc") == 2
