"""Tests for the Applications API.

Covers:
- GET/POST /api/v1/applications (owner-scoped list, create)
- GET/PUT/DELETE /api/v1/applications/{id} (owner or admin)
- PATCH /api/v1/applications/{id}/status (timeline append)
- GET /api/v1/applications/{id}/timeline, PATCH/DELETE entries (405)
- POST /api/v1/applications/{id}/attachments
- DELETE /api/v1/applications/bulk (partial success)
"""

import uuid

import pytest
from httpx import AsyncClient

from interntrack.core.pagination import MAX_PAGE

_BASE_URL = "/api/v1/applications"

_MINIMAL = {"company": "Acme", "position": "Software Engineering Intern"}


async def _create(client: AsyncClient, **overrides) -> dict:
    response = await client.post(_BASE_URL, json={**_MINIMAL, **overrides})
    assert response.status_code == 201, response.text
    return response.json()["data"]


# =============================================================================
# Auth
# =============================================================================


class TestAuthentication:
    async def test_list_requires_auth(self, unauthenticated_client: AsyncClient):
        response = await unauthenticated_client.get(_BASE_URL)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_invalid_token_rejected(self, api_app):
        from httpx import ASGITransport

        async with AsyncClient(
            transport=ASGITransport(app=api_app),
            base_url="http://test",
            headers={"Authorization": "Bearer not-a-jwt"},
        ) as ac:
            response = await ac.get(_BASE_URL)

        assert response.status_code == 401

    async def test_security_headers_present(self, client: AsyncClient):
        response = await client.get(_BASE_URL)

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store, max-age=0"


# =============================================================================
# Create
# =============================================================================


class TestCreateApplication:
    async def test_minimal_create_applies_defaults(self, client: AsyncClient):
        data = await _create(client)

        assert data["company"] == "Acme"
        assert data["status"] == "applied"
        assert data["job_type"] == "internship"
        assert data["priority"] == "medium"
        assert data["source"] == "other"
        assert data["salary"] == {"min": None, "max": None, "currency": "USD"}
        assert data["tags"] == []
        assert data["attachments"] == []
        assert data["timeline"] == []
        assert data["days_since_application"] == 0

    async def test_full_create(self, client: AsyncClient):
        data = await _create(
            client,
            company="  Globex  ",
            job_type="full-time",
            status="interview",
            priority="high",
            source="referral",
            location="Springfield",
            job_url="https://globex.example/jobs/1",
            notes="Referred by Hank",
            salary={"min": 90000, "max": 120000, "currency": "EUR"},
            contact_person={"name": "Hank", "email": "hank@globex.example"},
            tags=[" python ", "", "python", "remote"],
            application_date="2026-01-15T00:00:00",
        )

        assert data["company"] == "Globex"
        assert data["status"] == "interview"
        assert data["salary"] == {"min": 90000, "max": 120000, "currency": "EUR"}
        assert data["contact_person"]["name"] == "Hank"
        assert data["tags"] == ["python", "remote"]
        assert data["application_date"].startswith("2026-01-15T00:00:00")
        assert data["timeline"] == []

    async def test_owner_comes_from_token(self, client: AsyncClient):
        from tests.conftest import TEST_USER_ID

        data = await _create(client)

        assert data["user_id"] == str(TEST_USER_ID)

    async def test_client_supplied_owner_rejected(self, client: AsyncClient):
        response = await client.post(
            _BASE_URL, json={**_MINIMAL, "user_id": str(uuid.uuid4())}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize(
        "body",
        [
            {"position": "Intern"},
            {"company": "   ", "position": "Intern"},
            {"company": "x" * 101, "position": "Intern"},
            {**_MINIMAL, "status": "hired"},
            {**_MINIMAL, "job_type": "Full Time"},
            {**_MINIMAL, "notes": "n" * 1001},
            {**_MINIMAL, "salary": {"min": -1}},
        ],
    )
    async def test_invalid_bodies_rejected(self, client: AsyncClient, body):
        response = await client.post(_BASE_URL, json=body)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_salary_min_above_max_allowed(self, client: AsyncClient):
        data = await _create(client, salary={"min": 100, "max": 50})

        assert data["salary"]["min"] == 100


# =============================================================================
# List
# =============================================================================


class TestListApplications:
    async def test_list_is_owner_scoped(
        self, client: AsyncClient, user_b_client: AsyncClient
    ):
        await _create(client, company="Mine")
        await _create(user_b_client, company="Theirs")

        response = await client.get(_BASE_URL)
        body = response.json()

        assert response.status_code == 200
        assert [a["company"] for a in body["data"]] == ["Mine"]
        assert body["meta"] == {"total": 1, "page": 1, "per_page": 10, "total_pages": 1}

    async def test_admin_list_shows_only_own(
        self, client: AsyncClient, admin_client: AsyncClient
    ):
        await _create(client)

        response = await admin_client.get(_BASE_URL)

        assert response.json()["meta"]["total"] == 0

    async def test_filters_search_and_sort(self, client: AsyncClient):
        await _create(client, company="Zeta", status="interview")
        await _create(client, company="Alpha", status="interview")
        await _create(client, company="Beta", status="applied")

        response = await client.get(
            _BASE_URL, params={"status": "interview", "sort": "company"}
        )

        assert [a["company"] for a in response.json()["data"]] == ["Alpha", "Zeta"]

        response = await client.get(_BASE_URL, params={"search": "ET"})

        assert sorted(a["company"] for a in response.json()["data"]) == ["Beta", "Zeta"]

    async def test_invalid_status_filter_rejected(self, client: AsyncClient):
        response = await client.get(_BASE_URL, params={"status": "ghosted"})

        assert response.status_code == 400

    async def test_unknown_sort_accepted(self, client: AsyncClient):
        await _create(client)

        response = await client.get(_BASE_URL, params={"sort": "salary"})

        assert response.status_code == 200
        assert response.json()["meta"]["total"] == 1

    async def test_pagination_normalized(self, client: AsyncClient):
        for i in range(3):
            await _create(client, company=f"C{i}")

        response = await client.get(_BASE_URL, params={"page": 0, "per_page": 2})
        meta = response.json()["meta"]

        assert meta == {"total": 3, "page": 1, "per_page": 2, "total_pages": 2}
        assert len(response.json()["data"]) == 2

    async def test_per_page_capped(self, client: AsyncClient):
        response = await client.get(_BASE_URL, params={"per_page": 1000})

        assert response.json()["meta"]["per_page"] == 100

    @pytest.mark.parametrize("page", [MAX_PAGE + 1, 10**19])
    async def test_page_above_bound_rejected(self, client: AsyncClient, page):
        response = await client.get(_BASE_URL, params={"page": page})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_page_at_bound_is_empty(self, client: AsyncClient):
        await _create(client)

        response = await client.get(_BASE_URL, params={"page": MAX_PAGE})

        assert response.status_code == 200
        assert response.json()["data"] == []


# =============================================================================
# Get / Update / Delete
# =============================================================================


class TestSingleRecordAccess:
    async def test_owner_gets_record(self, client: AsyncClient):
        created = await _create(client)

        response = await client.get(f"{_BASE_URL}/{created['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["id"] == created["id"]

    async def test_foreign_record_looks_absent(
        self, client: AsyncClient, user_b_client: AsyncClient
    ):
        created = await _create(client)

        response = await user_b_client.get(f"{_BASE_URL}/{created['id']}")

        assert response.status_code == 404
        assert response.json()["error"] == {
            "code": "NOT_FOUND",
            "message": f"Application with id '{created['id']}' not found",
            "details": None,
        }

    async def test_unknown_id_returns_404(self, client: AsyncClient):
        missing = uuid.uuid4()

        response = await client.get(f"{_BASE_URL}/{missing}")

        assert response.status_code == 404
        assert response.json()["error"]["message"] == (
            f"Application with id '{missing}' not found"
        )

    async def test_admin_gets_foreign_record(
        self, client: AsyncClient, admin_client: AsyncClient
    ):
        created = await _create(client)

        response = await admin_client.get(f"{_BASE_URL}/{created['id']}")

        assert response.status_code == 200

    async def test_malformed_id_rejected(self, client: AsyncClient):
        response = await client.get(f"{_BASE_URL}/not-a-uuid")

        assert response.status_code == 400


class TestUpdateApplication:
    async def test_partial_update(self, client: AsyncClient):
        created = await _create(client, notes="first")

        response = await client.put(
            f"{_BASE_URL}/{created['id']}", json={"priority": "high"}
        )
        data = response.json()["data"]

        assert response.status_code == 200
        assert data["priority"] == "high"
        assert data["notes"] == "first"
        assert data["timeline"] == []

    async def test_status_change_via_update_appends_entry(self, client: AsyncClient):
        created = await _create(client)

        response = await client.put(
            f"{_BASE_URL}/{created['id']}",
            json={"status": "offer", "status_notes": "verbal offer"},
        )
        timeline = response.json()["data"]["timeline"]

        assert len(timeline) == 1
        assert timeline[0]["event"] == "Status changed from applied to offer"
        assert timeline[0]["notes"] == "verbal offer"

    async def test_null_required_field_rejected(self, client: AsyncClient):
        created = await _create(client)

        response = await client.put(
            f"{_BASE_URL}/{created['id']}", json={"company": None}
        )

        assert response.status_code == 400

    async def test_owner_field_rejected(self, client: AsyncClient):
        created = await _create(client)

        response = await client.put(
            f"{_BASE_URL}/{created['id']}", json={"user_id": str(uuid.uuid4())}
        )

        assert response.status_code == 400

    async def test_non_owner_update_returns_404(
        self, client: AsyncClient, user_b_client: AsyncClient
    ):
        created = await _create(client)

        response = await user_b_client.put(
            f"{_BASE_URL}/{created['id']}", json={"company": "Hijacked"}
        )

        assert response.status_code == 404
        fetched = await client.get(f"{_BASE_URL}/{created['id']}")
        assert fetched.json()["data"]["company"] == "Acme"

    async def test_admin_update_foreign_record(
        self, client: AsyncClient, admin_client: AsyncClient
    ):
        created = await _create(client)

        response = await admin_client.put(
            f"{_BASE_URL}/{created['id']}", json={"notes": "checked by admin"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["user_id"] == created["user_id"]


class TestDeleteApplication:
    async def test_delete_returns_204(self, client: AsyncClient):
        created = await _create(client)

        response = await client.delete(f"{_BASE_URL}/{created['id']}")

        assert response.status_code == 204
        assert (await client.get(f"{_BASE_URL}/{created['id']}")).status_code == 404

    async def test_non_owner_delete_returns_404(
        self, client: AsyncClient, user_b_client: AsyncClient
    ):
        created = await _create(client)

        response = await user_b_client.delete(f"{_BASE_URL}/{created['id']}")

        assert response.status_code == 404
        assert (await client.get(f"{_BASE_URL}/{created['id']}")).status_code == 200

    async def test_admin_delete_foreign_record(
        self, client: AsyncClient, admin_client: AsyncClient
    ):
        created = await _create(client)

        response = await admin_client.delete(f"{_BASE_URL}/{created['id']}")

        assert response.status_code == 204


# =============================================================================
# Status & Timeline
# =============================================================================


class TestChangeStatus:
    async def test_change_status_appends_entry(self, client: AsyncClient):
        created = await _create(client)

        response = await client.patch(
            f"{_BASE_URL}/{created['id']}/status",
            json={"status": "interview", "notes": "phone screen"},
        )
        data = response.json()["data"]

        assert response.status_code == 200
        assert data["status"] == "interview"
        assert [(e["event"], e["notes"]) for e in data["timeline"]] == [
            ("Status changed from applied to interview", "phone screen")
        ]

    async def test_repeated_status_is_idempotent(self, client: AsyncClient):
        created = await _create(client)
        url = f"{_BASE_URL}/{created['id']}/status"

        await client.patch(url, json={"status": "offer"})
        response = await client.patch(url, json={"status": "offer"})

        timeline = response.json()["data"]["timeline"]
        assert len(timeline) == 1
        assert timeline[0]["notes"] == ""

    async def test_invalid_status_rejected(self, client: AsyncClient):
        created = await _create(client)

        response = await client.patch(
            f"{_BASE_URL}/{created['id']}/status", json={"status": "hired"}
        )

        assert response.status_code == 400

    async def test_non_owner_status_change_returns_404(
        self, client: AsyncClient, user_b_client: AsyncClient
    ):
        created = await _create(client)

        response = await user_b_client.patch(
            f"{_BASE_URL}/{created['id']}/status", json={"status": "rejected"}
        )

        assert response.status_code == 404


class TestTimeline:
    async def test_timeline_in_append_order(self, client: AsyncClient):
        created = await _create(client)
        for status in ["interview", "offer", "accepted"]:
            await client.patch(
                f"{_BASE_URL}/{created['id']}/status", json={"status": status}
            )

        response = await client.get(f"{_BASE_URL}/{created['id']}/timeline")
        body = response.json()

        assert response.status_code == 200
        assert [e["event"] for e in body["data"]] == [
            "Status changed from applied to interview",
            "Status changed from interview to offer",
            "Status changed from offer to accepted",
        ]
        assert body["meta"]["total"] == 3

    async def test_empty_timeline(self, client: AsyncClient):
        created = await _create(client)

        response = await client.get(f"{_BASE_URL}/{created['id']}/timeline")

        assert response.json()["data"] == []
        assert response.json()["meta"]["total_pages"] == 0

    async def test_foreign_timeline_returns_404(
        self, client: AsyncClient, user_b_client: AsyncClient
    ):
        created = await _create(client)

        response = await user_b_client.get(f"{_BASE_URL}/{created['id']}/timeline")

        assert response.status_code == 404

    @pytest.mark.parametrize("method", ["PATCH", "DELETE"])
    async def test_timeline_entries_are_immutable(self, client: AsyncClient, method):
        created = await _create(client)
        await client.patch(
            f"{_BASE_URL}/{created['id']}/status", json={"status": "interview"}
        )
        timeline = (await client.get(f"{_BASE_URL}/{created['id']}/timeline")).json()
        entry_id = timeline["data"][0]["id"]

        response = await client.request(
            method,
            f"{_BASE_URL}/{created['id']}/timeline/{entry_id}",
            json={"event": "edited"},
        )

        assert response.status_code == 405
        assert response.json()["error"]["code"] == "METHOD_NOT_ALLOWED"
        after = (await client.get(f"{_BASE_URL}/{created['id']}/timeline")).json()
        assert after["data"] == timeline["data"]


# =============================================================================
# Attachments
# =============================================================================


class TestAttachments:
    async def test_add_attachment(self, client: AsyncClient):
        created = await _create(client)

        response = await client.post(
            f"{_BASE_URL}/{created['id']}/attachments",
            json={"name": "resume.pdf", "url": "https://files.example/resume.pdf"},
        )

        assert response.status_code == 201
        assert response.json()["data"]["name"] == "resume.pdf"
        fetched = (await client.get(f"{_BASE_URL}/{created['id']}")).json()["data"]
        assert [a["name"] for a in fetched["attachments"]] == ["resume.pdf"]

    async def test_invalid_url_rejected(self, client: AsyncClient):
        created = await _create(client)

        response = await client.post(
            f"{_BASE_URL}/{created['id']}/attachments",
            json={"name": "resume.pdf", "url": "not a url"},
        )

        assert response.status_code == 400


# =============================================================================
# Bulk delete
# =============================================================================


class TestBulkDelete:
    async def test_partial_success(
        self, client: AsyncClient, user_b_client: AsyncClient
    ):
        mine = await _create(client)
        theirs = await _create(user_b_client)

        response = await client.request(
            "DELETE",
            f"{_BASE_URL}/bulk",
            json={"ids": [mine["id"], "nonexistent-id", theirs["id"]]},
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"deleted_count": 1}
        assert (await client.get(f"{_BASE_URL}/{mine['id']}")).status_code == 404
        assert (
            await user_b_client.get(f"{_BASE_URL}/{theirs['id']}")
        ).status_code == 200

    async def test_empty_ids_rejected(self, client: AsyncClient):
        response = await client.request("DELETE", f"{_BASE_URL}/bulk", json={"ids": []})

        assert response.status_code == 400

    async def test_missing_body_rejected(self, client: AsyncClient):
        response = await client.request("DELETE", f"{_BASE_URL}/bulk")

        assert response.status_code == 400
