"""
Integration tests for Events API endpoints.

Tests end-to-end flows for event listings:
- Submitting events (anonymous, user, admin)
- Listing, slug lookup, occurrences and the calendar
- Editing and duplicating
- Admin moderation queue and actions
"""

import pytest


EVENT_PAYLOAD = {
    "title": "Spring Meet",
    "description": "Monthly gathering of air-cooled classics",
    "city": "Campinas",
    "state": "SP",
    "location": "Parque Taquaral",
    "start_at": "2026-01-31T09:00:00",
    "contact_name": "Ana",
    "contact_phone": "+55 19 99999-0000",
    "recurrence": {"type": "monthly", "day_of_month": 31, "occurrence_count": 3},
}


class TestEventsAPI:
    """Integration tests for Events API endpoints."""

    @pytest.fixture
    def submit(self, test_client):
        """Submit an event and return the response JSON."""
        def _submit(headers=None, **overrides):
            payload = {**EVENT_PAYLOAD, **overrides}
            response = test_client.post("/api/events", json=payload, headers=headers or {})
            assert response.status_code == 201, response.text
            return response.json()
        return _submit

    @pytest.fixture
    def approve(self, test_client, admin_headers):
        """Approve an event through the admin API."""
        def _approve(event_id):
            response = test_client.post(
                f"/api/admin/events/{event_id}/action",
                json={"action": "approve"},
                headers=admin_headers,
            )
            assert response.status_code == 200, response.text
            return response.json()["event"]
        return _approve

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def test_anonymous_submission(self, submit):
        """Test POST /api/events without an actor."""
        data = submit()

        event = data["event"]
        assert event["id"].startswith("evt_")
        assert event["slug"] == "spring-meet"
        assert event["status"] == "pending"
        assert event["created_by"] == "anonymous"
        assert event["recurrence"] == {"type": "monthly", "day_of_month": 31, "occurrence_count": 3}
        assert event["recurrence_label"] == "Every month on day 31 for 3 months"
        assert event["start_at"] == "2026-01-31T09:00:00"
        assert event["created_at"].endswith("Z")
        assert data["message"] == "Event submitted and awaiting approval"

    def test_admin_submission_published(self, submit, admin_headers):
        """Test admin submissions skip moderation."""
        data = submit(headers=admin_headers)
        assert data["event"]["status"] == "approved"
        assert data["message"] == "Event published"

    def test_missing_required_field(self, test_client):
        """Test a submission without a title is a 400."""
        payload = {k: v for k, v in EVENT_PAYLOAD.items() if k != "title"}
        response = test_client.post("/api/events", json=payload)
        assert response.status_code == 400
        assert "title" in response.json()["detail"]

    def test_end_before_start(self, test_client, admin_headers):
        """Test date ordering is enforced for admins too."""
        response = test_client.post(
            "/api/events",
            json={**EVENT_PAYLOAD, "end_at": "2026-01-30T09:00:00"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_invalid_recurrence(self, test_client):
        """Test an unknown recurrence type is a 400."""
        response = test_client.post(
            "/api/events",
            json={**EVENT_PAYLOAD, "recurrence": {"type": "fortnightly"}},
        )
        assert response.status_code == 400

    def test_wrong_body_type(self, test_client):
        """Test schema violations are a 422."""
        response = test_client.post("/api/events", json={**EVENT_PAYLOAD, "images": "not-a-list"})
        assert response.status_code == 422

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def test_public_listing_hides_pending(self, test_client, submit, approve):
        """Test GET /api/events shows approved events only."""
        submit(title="Pending Meet")
        approved = approve(submit(title="Approved Meet")["event"]["id"])

        response = test_client.get("/api/events")

        assert response.status_code == 200
        assert [e["id"] for e in response.json()] == [approved["id"]]

    def test_admin_listing_with_filter(self, test_client, submit, approve, admin_headers):
        """Test admins can list by status."""
        pending = submit(title="Pending Meet")["event"]
        approve(submit(title="Approved Meet")["event"]["id"])

        response = test_client.get("/api/events", params={"status": "pending"}, headers=admin_headers)

        assert response.status_code == 200
        assert [e["id"] for e in response.json()] == [pending["id"]]

    def test_get_by_id_and_slug(self, test_client, submit):
        """Test GET by GUID and by slug."""
        event = submit()["event"]

        assert test_client.get(f"/api/events/{event['id']}").json()["slug"] == "spring-meet"
        assert test_client.get("/api/events/slug/spring-meet").json()["id"] == event["id"]

    def test_get_not_found(self, test_client):
        """Test unknown GUIDs and slugs are 404."""
        assert test_client.get("/api/events/evt_01hgw2bbg00000000000000000").status_code == 404
        assert test_client.get("/api/events/slug/nothing-here").status_code == 404

    def test_occurrences(self, test_client, submit):
        """Test the Spring Meet monthly clamp through the API."""
        event = submit()["event"]

        response = test_client.get(f"/api/events/{event['id']}/occurrences")

        assert response.status_code == 200
        data = response.json()
        assert data["occurrences"] == [
            "2026-01-31T09:00:00",
            "2026-02-28T09:00:00",
            "2026-03-31T09:00:00",
        ]
        assert data["label"] == "Every month on day 31 for 3 months"

    def test_calendar(self, test_client, submit, approve):
        """Test GET /api/events/calendar for one month."""
        event = approve(submit()["event"]["id"])

        response = test_client.get("/api/events/calendar", params={"year": 2026, "month": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["year"] == 2026
        assert data["month"] == 2
        assert len(data["entries"]) == 1
        assert data["entries"][0]["event"]["id"] == event["id"]
        assert data["entries"][0]["dates"] == ["2026-02-28T09:00:00"]

    def test_calendar_month_without_year(self, test_client):
        """Test a month filter without a year is a 400."""
        response = test_client.get("/api/events/calendar", params={"month": 2})
        assert response.status_code == 400

    # ------------------------------------------------------------------
    # Edit and duplicate
    # ------------------------------------------------------------------

    def test_edit_requires_actor(self, test_client, submit):
        """Test PUT without an actor is a 401."""
        event = submit()["event"]
        response = test_client.put(f"/api/events/{event['id']}", json={"city": "Santos"})
        assert response.status_code == 401

    def test_owner_edit_back_to_pending(self, test_client, submit, approve, owner_headers):
        """Test an owner edit of an approved event re-enters moderation."""
        event = approve(submit(headers=owner_headers)["event"]["id"])

        response = test_client.put(
            f"/api/events/{event['id']}",
            json={"description": "New route"},
            headers=owner_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["event"]["status"] == "pending"
        assert data["event"]["description"] == "New route"
        assert data["past_event"] is None
        assert data["message"] == "Event updated and sent back for review"

    def test_stranger_edit_forbidden(self, test_client, submit, owner_headers, stranger_headers):
        """Test editing someone else's event is a 403."""
        event = submit(headers=owner_headers)["event"]
        response = test_client.put(
            f"/api/events/{event['id']}",
            json={"description": "Hijacked"},
            headers=stranger_headers,
        )
        assert response.status_code == 403

    def test_admin_complete_via_edit_with_gallery(self, test_client, submit, admin_headers):
        """Test completing with a gallery payload returns the PastEvent."""
        event = submit(headers=admin_headers)["event"]

        response = test_client.put(
            f"/api/events/{event['id']}",
            json={
                "status": "completed",
                "past_event": {
                    "videos": ["https://youtu.be/dQw4w9WgXcQ"],
                    "attendance": 85,
                },
            },
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["event"]["status"] == "completed"
        assert data["past_event"]["event_id"] == event["id"]
        assert data["past_event"]["videos"] == ["https://www.youtube.com/watch?v=dQw4w9WgXcQ"]
        assert data["past_event"]["attendance"] == 85

    def test_admin_complete_via_edit_without_media(self, test_client, submit, admin_headers):
        """Test the media gate on edit is a 400."""
        event = submit(headers=admin_headers)["event"]
        response = test_client.put(
            f"/api/events/{event['id']}",
            json={"status": "completed"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_duplicate(self, test_client, submit, owner_headers):
        """Test POST /api/events/{id}/duplicate."""
        event = submit(headers=owner_headers)["event"]

        response = test_client.post(f"/api/events/{event['id']}/duplicate", headers=owner_headers)

        assert response.status_code == 201
        copy = response.json()["event"]
        assert copy["id"] != event["id"]
        assert copy["title"] == "Spring Meet (copy)"
        assert copy["slug"] == "spring-meet-copy"
        assert copy["featured"] is False

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    def test_pending_queue_admin_only(self, test_client, submit, admin_headers, owner_headers):
        """Test GET /api/admin/events/pending."""
        event = submit()["event"]

        response = test_client.get("/api/admin/events/pending", headers=admin_headers)
        assert response.status_code == 200
        assert [e["id"] for e in response.json()] == [event["id"]]

        assert test_client.get("/api/admin/events/pending", headers=owner_headers).status_code == 403
        assert test_client.get("/api/admin/events/pending").status_code == 401

    def test_action_by_non_admin(self, test_client, submit, owner_headers):
        """Test moderation by a regular user is a 403."""
        event = submit(headers=owner_headers)["event"]
        response = test_client.post(
            f"/api/admin/events/{event['id']}/action",
            json={"action": "approve"},
            headers=owner_headers,
        )
        assert response.status_code == 403

    def test_unknown_action(self, test_client, submit, admin_headers):
        """Test an unknown action is a 400."""
        event = submit()["event"]
        response = test_client.post(
            f"/api/admin/events/{event['id']}/action",
            json={"action": "archive"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_complete_then_delete(self, test_client, submit, admin_headers):
        """Test complete materializes the gallery and delete keeps it."""
        event = submit(headers=admin_headers, images=["https://cdn.example.com/a.jpg"])["event"]

        response = test_client.post(
            f"/api/admin/events/{event['id']}/action",
            json={"action": "complete"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["event"]["status"] == "completed"

        gallery = test_client.get("/api/past-events").json()
        assert len(gallery) == 1
        assert gallery[0]["event_id"] == event["id"]
        assert gallery[0]["images"] == ["https://cdn.example.com/a.jpg"]

        response = test_client.post(
            f"/api/admin/events/{event['id']}/action",
            json={"action": "delete"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Event deleted"
        assert test_client.get(f"/api/events/{event['id']}").status_code == 404

        gallery = test_client.get("/api/past-events").json()
        assert len(gallery) == 1
        assert gallery[0]["event_id"] is None

    def test_complete_without_media(self, test_client, submit, admin_headers):
        """Test the complete action's media gate is a 400."""
        event = submit(headers=admin_headers)["event"]
        response = test_client.post(
            f"/api/admin/events/{event['id']}/action",
            json={"action": "complete"},
            headers=admin_headers,
        )
        assert response.status_code == 400
