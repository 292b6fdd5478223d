"""Tests for the Analytics API.

All endpoints aggregate only the caller's own applications.
"""

import pytest
from httpx import AsyncClient

_BASE_URL = "/api/v1/analytics"
_APPLICATIONS_URL = "/api/v1/applications"


async def _create(client: AsyncClient, **fields) -> dict:
    body = {"company": "Acme", "position": "Intern", **fields}
    response = await client.post(_APPLICATIONS_URL, json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestEmptyAnalytics:
    """A user with no applications gets zeros and empty collections."""

    async def test_dashboard(self, client: AsyncClient):
        response = await client.get(f"{_BASE_URL}/dashboard")

        assert response.status_code == 200
        assert response.json()["data"] == {
            "total_applications": 0,
            "recent_count": 0,
            "success_rate": 0.0,
            "offer_count": 0,
            "status_breakdown": [],
            "job_type_breakdown": [],
            "monthly_applications": [],
            "priority_breakdown": [],
            "top_companies": [],
        }

    @pytest.mark.parametrize("path", ["status-stats", "timeline", "sources"])
    async def test_list_endpoints_empty(self, client: AsyncClient, path):
        response = await client.get(f"{_BASE_URL}/{path}")

        assert response.status_code == 200
        assert response.json()["data"] == []

    async def test_response_rate(self, client: AsyncClient):
        response = await client.get(f"{_BASE_URL}/response-rate")

        assert response.json()["data"] == {
            "total": 0,
            "responded": 0,
            "no_response": 0,
            "response_rate": 0.0,
        }


class TestDashboard:
    async def test_totals_and_breakdowns(self, client: AsyncClient):
        await _create(client, status="applied")
        await _create(client, status="offer")

        data = (await client.get(f"{_BASE_URL}/dashboard")).json()["data"]

        assert data["total_applications"] == 2
        assert data["recent_count"] == 2
        assert data["success_rate"] == 50.0
        assert data["offer_count"] == 1
        assert sum(s["count"] for s in data["status_breakdown"]) == 2
        assert data["top_companies"] == [{"company": "Acme", "count": 2}]
        assert len(data["monthly_applications"]) == 1
        assert data["monthly_applications"][0]["count"] == 2

    async def test_scoped_to_caller(
        self,
        client: AsyncClient,
        user_b_client: AsyncClient,
        admin_client: AsyncClient,
    ):
        await _create(client)
        await _create(user_b_client)
        await _create(user_b_client)

        mine = (await client.get(f"{_BASE_URL}/dashboard")).json()["data"]
        admin = (await admin_client.get(f"{_BASE_URL}/dashboard")).json()["data"]

        assert mine["total_applications"] == 1
        assert admin["total_applications"] == 0

    async def test_requires_auth(self, unauthenticated_client: AsyncClient):
        response = await unauthenticated_client.get(f"{_BASE_URL}/dashboard")

        assert response.status_code == 401


class TestStatusStats:
    async def test_counts_per_status(self, client: AsyncClient):
        await _create(client, status="rejected")
        await _create(client, status="rejected")
        await _create(client, status="interview")

        data = (await client.get(f"{_BASE_URL}/status-stats")).json()["data"]

        assert data == [
            {"status": "rejected", "count": 2, "avg_days_since": 0},
            {"status": "interview", "count": 1, "avg_days_since": 0},
        ]


class TestTimeline:
    async def test_counts_today(self, client: AsyncClient):
        await _create(client)
        await _create(client)

        data = (await client.get(f"{_BASE_URL}/timeline")).json()["data"]

        assert len(data) == 1
        assert data[0]["count"] == 2

    async def test_old_applications_outside_window(self, client: AsyncClient):
        await _create(client, application_date="2020-01-01T00:00:00Z")

        data = (
            await client.get(f"{_BASE_URL}/timeline", params={"days": 7})
        ).json()["data"]

        assert data == []

    @pytest.mark.parametrize("days", [0, -5, 366])
    async def test_days_out_of_range_rejected(self, client: AsyncClient, days):
        response = await client.get(f"{_BASE_URL}/timeline", params={"days": days})

        assert response.status_code == 400


class TestResponseRate:
    async def test_withdrawn_in_neither_bucket(self, client: AsyncClient):
        for status in ["applied", "interview", "withdrawn", "rejected"]:
            await _create(client, status=status)

        data = (await client.get(f"{_BASE_URL}/response-rate")).json()["data"]

        assert data == {
            "total": 4,
            "responded": 2,
            "no_response": 1,
            "response_rate": 50.0,
        }


class TestSources:
    async def test_single_linkedin_offer(self, client: AsyncClient):
        await _create(client, source="linkedin", status="offer")

        data = (await client.get(f"{_BASE_URL}/sources")).json()["data"]

        assert data == [
            {
                "source": "linkedin",
                "count": 1,
                "offer_count": 1,
                "success_rate": 100.0,
            }
        ]
