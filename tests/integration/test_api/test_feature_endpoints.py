import pytest
from datetime import timedelta


def community_url(community, *parts) -> str:
    return "/".join([f"/api/v1/communities/{community.id}", *[str(p) for p in parts]])


@pytest.fixture
def fence_poll(client, community, clock, headers_for, board_user):
    """Single-choice poll created over HTTP, open for one day."""
    response = client.post(
        community_url(community, "polls"),
        json={
            "question": "Repaint the fence?",
            "options": ["Yes", "No"],
            "closes_at": (clock.now() + timedelta(days=1)).isoformat(),
        },
        headers=headers_for(board_user),
    )
    assert response.status_code == 201
    return response.json()["data"]


@pytest.mark.integration
class TestPollEndpoints:
    """Polls and voting over HTTP."""

    def test_create_poll_board_only(self, client, community, headers_for, resident_user):
        """Test residents cannot create polls."""
        response = client.post(
            community_url(community, "polls"),
            json={"question": "Pool hours?", "options": ["9-5", "8-8"]},
            headers=headers_for(resident_user),
        )

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Board member access required"

    def test_create_poll_needs_two_options(self, client, community, headers_for, board_user):
        """Test a poll with one option fails validation."""
        response = client.post(
            community_url(community, "polls"),
            json={"question": "Pool hours?", "options": ["9-5", "  "]},
            headers=headers_for(board_user),
        )

        assert response.status_code == 422

    def test_vote_and_results_after_close(self, client, community, clock, fence_poll, headers_for, resident_user):
        """Test results stay hidden while open and appear once the poll closes."""
        carol = headers_for(resident_user)
        yes, no = (option["id"] for option in fence_poll["options"])

        voted = client.post(
            community_url(community, "polls", fence_poll["id"], "vote"), json={"option_ids": [yes]}, headers=carol
        )
        assert voted.status_code == 200
        assert voted.json()["data"] == {"message": "Vote recorded", "option_ids": [yes]}

        detail = client.get(community_url(community, "polls", fence_poll["id"]), headers=carol).json()["data"]
        assert detail["state"] == "open"
        assert detail["user_votes"] == [yes]
        assert detail["has_voted"] is True
        assert detail["results"] is None
        assert detail["seconds_remaining"] == 86400

        clock.advance(days=2)

        closed = client.get(community_url(community, "polls", fence_poll["id"]), headers=carol).json()["data"]
        assert closed["state"] == "closed"
        assert closed["seconds_remaining"] is None
        counts = {option["id"]: option["vote_count"] for option in closed["results"]["options"]}
        assert counts == {yes: 1, no: 0}
        assert closed["results"]["participation_count"] == 1

    def test_vote_after_close(self, client, community, clock, fence_poll, headers_for, resident_user):
        """Test voting on a closed poll is refused."""
        clock.advance(days=2)
        yes = fence_poll["options"][0]["id"]

        response = client.post(
            community_url(community, "polls", fence_poll["id"], "vote"),
            json={"option_ids": [yes]},
            headers=headers_for(resident_user),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "POLL_CLOSED"

    def test_vote_rejections(self, client, community, fence_poll, headers_for, resident_user):
        """Test ballot problems map to their error codes."""
        carol = headers_for(resident_user)
        url = community_url(community, "polls", fence_poll["id"], "vote")
        yes, no = (option["id"] for option in fence_poll["options"])

        cases = [
            ([], "EMPTY_SELECTION"),
            ([yes, no], "INVALID_SELECTION_COUNT"),
            ([9999], "INVALID_OPTION"),
        ]
        for option_ids, code in cases:
            response = client.post(url, json={"option_ids": option_ids}, headers=carol)
            assert response.status_code == 400
            assert response.json()["error"]["code"] == code

    def test_list_polls(self, client, community, fence_poll, headers_for, resident_user):
        """Test the list carries the state and the voter count."""
        response = client.get(community_url(community, "polls"), headers=headers_for(resident_user))

        assert response.status_code == 200
        polls = response.json()["data"]
        assert [(p["question"], p["state"], p["vote_count"]) for p in polls] == [("Repaint the fence?", "open", 0)]

    def test_delete_poll(self, client, community, fence_poll, headers_for, board_user):
        """Test the board deletes polls."""
        response = client.delete(community_url(community, "polls", fence_poll["id"]), headers=headers_for(board_user))

        assert response.status_code == 200
        missing = client.get(community_url(community, "polls", fence_poll["id"]), headers=headers_for(board_user))
        assert missing.status_code == 404


@pytest.mark.integration
class TestPotluckEndpoints:
    """Potlucks and dish signups over HTTP."""

    def test_signup_limit(self, client, community, headers_for, admin_user, board_user, resident_user):
        """Test the category cap answers 409 once it is reached."""
        created = client.post(
            community_url(community, "potlucks"),
            json={"title": "Spring Potluck", "event_date": "2026-04-18", "max_appetizers": 1},
            headers=headers_for(admin_user),
        )
        assert created.status_code == 201
        potluck_id = created.json()["data"]["id"]
        url = community_url(community, "potlucks", potluck_id, "signups")

        first = client.post(url, json={"dish_name": "Salsa", "category": "appetizer"}, headers=headers_for(board_user))
        assert first.status_code == 201
        assert first.json()["data"]["user_name"] == "Bob Board"

        full = client.post(url, json={"dish_name": "Chips", "category": "appetizer"}, headers=headers_for(resident_user))
        assert full.status_code == 409
        assert full.json()["error"]["code"] == "CATEGORY_FULL"

        detail = client.get(community_url(community, "potlucks", potluck_id), headers=headers_for(resident_user))
        assert [s["dish_name"] for s in detail.json()["data"]["signups"]] == ["Salsa"]

    def test_create_potluck_admin_only(self, client, community, headers_for, board_user):
        """Test the board cannot create potlucks."""
        response = client.post(
            community_url(community, "potlucks"),
            json={"title": "BBQ", "event_date": "2026-07-04"},
            headers=headers_for(board_user),
        )

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Admin access required"


@pytest.mark.integration
class TestSuggestionEndpoints:
    """Meeting suggestions over HTTP."""

    def test_upvote_toggle(self, client, community, headers_for, resident_user, board_user):
        """Test upvoting twice takes the upvote back."""
        created = client.post(
            community_url(community, "suggestions"),
            json={"title": "Speed bumps"},
            headers=headers_for(resident_user),
        )
        assert created.status_code == 201
        url = community_url(community, "suggestions", created.json()["data"]["id"], "upvote")

        first = client.post(url, headers=headers_for(board_user))
        assert first.json()["data"] == {"upvoted": True, "upvote_count": 1}

        second = client.post(url, headers=headers_for(board_user))
        assert second.json()["data"] == {"upvoted": False, "upvote_count": 0}

    def test_status_change(self, client, community, headers_for, resident_user, board_user):
        """Test the board moves a suggestion onto the agenda."""
        created = client.post(
            community_url(community, "suggestions"), json={"title": "Dog park"}, headers=headers_for(resident_user)
        )
        url = community_url(community, "suggestions", created.json()["data"]["id"], "status")

        denied = client.put(url, json={"status": "reviewed"}, headers=headers_for(resident_user))
        assert denied.status_code == 403

        response = client.put(url, json={"status": "added_to_agenda"}, headers=headers_for(board_user))
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "added_to_agenda"


@pytest.mark.integration
class TestQuestionEndpoints:
    """Board questions over HTTP."""

    def test_question_visibility(self, client, community, headers_for, resident_user, board_user, admin_user):
        """Test a private question is visible to its asker and the board only."""
        created = client.post(
            community_url(community, "questions"),
            json={"title": "Pool hours", "message": "When does the pool open?"},
            headers=headers_for(resident_user),
        )
        assert created.status_code == 201
        question_id = created.json()["data"]["id"]
        assert created.json()["data"]["is_public"] is False

        answered = client.post(
            community_url(community, "questions", question_id, "responses"),
            json={"message": "Memorial Day weekend", "is_public": True},
            headers=headers_for(board_user),
        )
        assert answered.status_code == 201
        assert answered.json()["data"]["responder_name"] == "Bob Board"

        detail = client.get(community_url(community, "questions", question_id), headers=headers_for(admin_user))
        data = detail.json()["data"]
        assert data["is_public"] is True
        assert data["status"] == "answered"
        assert [r["message"] for r in data["responses"]] == ["Memorial Day weekend"]

        hidden = client.put(
            community_url(community, "questions", question_id, "visibility"),
            json={"is_public": False},
            headers=headers_for(board_user),
        )
        assert hidden.json()["data"]["is_public"] is False


@pytest.mark.integration
class TestCalendarEndpoints:
    """Community calendar over HTTP."""

    def test_month_filter(self, client, community, headers_for, board_user, resident_user):
        """Test events are listed for the requested month only."""
        for title, day in [("Board meeting", "2026-03-10"), ("Annual meeting", "2026-04-14")]:
            response = client.post(
                community_url(community, "calendar"),
                json={"title": title, "event_date": day, "start_time": "19:00:00"},
                headers=headers_for(board_user),
            )
            assert response.status_code == 201

        march = client.get(
            community_url(community, "calendar"), params={"month": "2026-03"}, headers=headers_for(resident_user)
        )

        assert march.status_code == 200
        assert [e["title"] for e in march.json()["data"]] == ["Board meeting"]

    def test_invalid_month(self, client, community, headers_for, resident_user):
        """Test a malformed month is a validation error."""
        response = client.get(
            community_url(community, "calendar"), params={"month": "March"}, headers=headers_for(resident_user)
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_end_before_start(self, client, community, headers_for, board_user):
        """Test an event ending before it starts fails validation."""
        response = client.post(
            community_url(community, "calendar"),
            json={"title": "Board meeting", "event_date": "2026-03-10", "start_time": "19:00:00", "end_time": "18:00:00"},
            headers=headers_for(board_user),
        )

        assert response.status_code == 422
