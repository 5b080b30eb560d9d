"""
Tests for voting API endpoints.
"""

import pytest
from httpx import AsyncClient

VOTER = {"X-Forwarded-For": "203.0.113.7"}
OTHER_VOTER = {"X-Forwarded-For": "198.51.100.23"}


@pytest.mark.integration
class TestContestantsEndpoint:
    """Test GET /api/v1/voting/contestants."""

    async def test_lists_active_contestants_with_percentages(self, client: AsyncClient, create_contestant) -> None:
        await create_contestant("Contestant A", votes=30)
        await create_contestant("Contestant B", votes=10)
        await create_contestant("Evicted", votes=99, is_active=False)

        response = await client.get("/api/v1/voting/contestants")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["totalVotes"] == 40
        assert body["totalContestants"] == 2
        assert [(c["name"], c["votePercentage"]) for c in body["data"]] == [
            ("Contestant A", 75),
            ("Contestant B", 25),
        ]


@pytest.mark.integration
class TestSubmitVoteEndpoint:
    """Test POST /api/v1/voting/submit."""

    async def test_accepted_vote(self, client: AsyncClient, create_contestant, fake_channel) -> None:
        a = await create_contestant("Contestant A", votes=10)
        await create_contestant("Contestant B", votes=10)

        response = await client.post("/api/v1/voting/submit", json={"contestantId": a.id}, headers=VOTER)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Vote submitted successfully"
        assert body["data"]["contestant"]["votes"] == 11
        assert body["data"]["contestant"]["votePercentage"] == 52
        assert body["data"]["remainingVotes"] == 2
        assert fake_channel.named("voteUpdate") == [
            {"contestantId": a.id, "newVoteCount": 11, "votePercentage": 52, "totalVotes": 21}
        ]

    async def test_duplicate_vote(self, client: AsyncClient, create_contestant, fake_channel) -> None:
        a = await create_contestant("Contestant A")
        await client.post("/api/v1/voting/submit", json={"contestantId": a.id}, headers=VOTER)

        response = await client.post("/api/v1/voting/submit", json={"contestantId": a.id}, headers=VOTER)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "You have already voted for this contestant today",
            "reason": "already_voted",
        }
        assert len(fake_channel.named("voteUpdate")) == 1

    async def test_daily_limit(self, client: AsyncClient, create_contestant) -> None:
        contestants = [await create_contestant(f"Contestant {n}") for n in "ABCD"]
        for c in contestants[:3]:
            ok = await client.post("/api/v1/voting/submit", json={"contestantId": c.id}, headers=VOTER)
            assert ok.status_code == 200

        response = await client.post(
            "/api/v1/voting/submit", json={"contestantId": contestants[3].id}, headers=VOTER
        )

        assert response.status_code == 400
        assert response.json()["reason"] == "daily_limit_reached"
        assert response.json()["message"] == "Daily vote limit reached (3 votes per day)"

        other = await client.post(
            "/api/v1/voting/submit", json={"contestantId": contestants[3].id}, headers=OTHER_VOTER
        )
        assert other.status_code == 200

    async def test_unknown_contestant(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/voting/submit", json={"contestantId": "nobody"}, headers=VOTER)

        assert response.status_code == 404
        assert response.json()["reason"] == "not_found"
        assert response.json()["success"] is False

    async def test_overlong_contestant_id_is_not_found(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/voting/submit", json={"contestantId": "x" * 80}, headers=VOTER)

        assert response.status_code == 404
        assert response.json()["reason"] == "not_found"

    async def test_missing_contestant_id(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/voting/submit", json={}, headers=VOTER)

        assert response.status_code == 400
        assert response.json()["reason"] == "validation_error"
        assert "contestantId" in response.json()["message"]

    async def test_unknown_platform_is_validation_error(self, client: AsyncClient, create_contestant) -> None:
        a = await create_contestant("Contestant A")

        response = await client.post(
            "/api/v1/voting/submit", json={"contestantId": a.id, "platform": "fax"}, headers=VOTER
        )

        assert response.status_code == 400

    async def test_vote_rate_limit(self, client: AsyncClient, create_contestant) -> None:
        """Five vote requests per minute per address, regardless of outcome."""
        a = await create_contestant("Contestant A")
        for _ in range(5):
            await client.post("/api/v1/voting/submit", json={"contestantId": a.id}, headers=VOTER)

        response = await client.post("/api/v1/voting/submit", json={"contestantId": a.id}, headers=VOTER)

        assert response.status_code == 429
        assert response.json()["reason"] == "rate_limited"
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert int(response.headers["Retry-After"]) >= 1


@pytest.mark.integration
class TestStatusAndStatsEndpoints:
    """Test GET /status and /stats."""

    async def test_status_reflects_votes(self, client: AsyncClient, create_contestant) -> None:
        a = await create_contestant("Contestant A")
        await client.post("/api/v1/voting/submit", json={"contestantId": a.id}, headers=VOTER)

        response = await client.get("/api/v1/voting/status", headers=VOTER)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["tracked"] is True
        assert data["dailyVoteCount"] == 1
        assert data["remainingVotes"] == 2
        assert data["votedContestants"][0]["contestantName"] == "Contestant A"

        fresh = (await client.get("/api/v1/voting/status", headers=OTHER_VOTER)).json()["data"]
        assert fresh["dailyVoteCount"] == 0
        assert fresh["remainingVotes"] == 3

    async def test_stats(self, client: AsyncClient, create_contestant) -> None:
        a = await create_contestant("Contestant A", votes=5)
        await create_contestant("Contestant B", votes=9)
        await client.post("/api/v1/voting/submit", json={"contestantId": a.id}, headers=VOTER)

        response = await client.get("/api/v1/voting/stats")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalVotes"] == 1
        assert data["activeContestants"] == 2
        assert data["recentVotes"] == 1
        assert [c["name"] for c in data["topContestants"]] == ["Contestant B", "Contestant A"]
