import pytest
from app.services.suggestion_service import SuggestionService
from app.schemas.suggestion import SuggestionCreate, SuggestionUpdate
from app.models.suggestion import SuggestionStatus
from app.core.exception import AuthorizationException, ResourceNotFoundException


@pytest.fixture
def suggestion_service(db_session):
    return SuggestionService(db_session)


@pytest.mark.unit
class TestSuggestionService:
    """Meeting suggestions, upvotes and triage."""

    def test_create_suggestion(self, suggestion_service, context_for, resident_user, community):
        """Test new suggestions start submitted with no upvotes."""
        created = suggestion_service.create_suggestion(
            context_for(resident_user, community), SuggestionCreate(title="Speed bumps on Oak St")
        )

        assert created["status"] == SuggestionStatus.SUBMITTED
        assert created["upvote_count"] == 0
        assert created["submitter_name"] == "Carol Resident"

    def test_toggle_upvote(self, suggestion_service, context_for, resident_user, board_user, community):
        """Test the second upvote by the same member takes it back."""
        suggestion = suggestion_service.create_suggestion(
            context_for(resident_user, community), SuggestionCreate(title="More benches")
        )
        bob = context_for(board_user, community)

        assert suggestion_service.toggle_upvote(bob, suggestion["id"]) == {"upvoted": True, "upvote_count": 1}
        assert suggestion_service.toggle_upvote(bob, suggestion["id"]) == {"upvoted": False, "upvote_count": 0}

    def test_list_orders_by_upvotes(
        self, suggestion_service, context_for, admin_user, board_user, resident_user, community
    ):
        """Test the most upvoted suggestion comes first, then the newest."""
        carol = context_for(resident_user, community)
        first = suggestion_service.create_suggestion(carol, SuggestionCreate(title="Dog park"))
        second = suggestion_service.create_suggestion(carol, SuggestionCreate(title="Pool heater"))
        third = suggestion_service.create_suggestion(carol, SuggestionCreate(title="Gate code"))

        suggestion_service.toggle_upvote(context_for(admin_user, community), first["id"])
        suggestion_service.toggle_upvote(context_for(board_user, community), first["id"])
        suggestion_service.toggle_upvote(carol, second["id"])

        listed = suggestion_service.list_suggestions(carol)

        assert [s["title"] for s in listed] == ["Dog park", "Pool heater", "Gate code"]
        assert [s["upvote_count"] for s in listed] == [2, 1, 0]
        assert [s["user_upvoted"] for s in listed] == [False, True, False]
        assert listed[2]["id"] == third["id"]

    def test_set_status_board_only(self, suggestion_service, context_for, board_user, resident_user, community):
        """Test only the board triages suggestions."""
        suggestion = suggestion_service.create_suggestion(
            context_for(resident_user, community), SuggestionCreate(title="Holiday lights")
        )

        with pytest.raises(AuthorizationException):
            suggestion_service.set_status(
                context_for(resident_user, community), suggestion["id"], SuggestionStatus.ADDED_TO_AGENDA
            )

        updated = suggestion_service.set_status(
            context_for(board_user, community), suggestion["id"], SuggestionStatus.ADDED_TO_AGENDA
        )
        assert updated["status"] == SuggestionStatus.ADDED_TO_AGENDA
        assert updated["status_updated_by_id"] == board_user.id

    def test_update_owner_or_admin(
        self, suggestion_service, context_for, admin_user, board_user, resident_user, community
    ):
        """Test the author and the admin may edit, a board member may not."""
        suggestion = suggestion_service.create_suggestion(
            context_for(resident_user, community), SuggestionCreate(title="Recycling")
        )
        data = SuggestionUpdate(title="Recycling bins", description="Two per street")

        with pytest.raises(AuthorizationException):
            suggestion_service.update_suggestion(context_for(board_user, community), suggestion["id"], data)

        updated = suggestion_service.update_suggestion(context_for(admin_user, community), suggestion["id"], data)
        assert updated["title"] == "Recycling bins"

    def test_delete_by_board(self, suggestion_service, context_for, board_user, resident_user, admin_user, community):
        """Test board members may delete someone else's suggestion."""
        suggestion = suggestion_service.create_suggestion(
            context_for(admin_user, community), SuggestionCreate(title="Snow removal")
        )

        with pytest.raises(AuthorizationException):
            suggestion_service.delete_suggestion(context_for(resident_user, community), suggestion["id"])

        suggestion_service.delete_suggestion(context_for(board_user, community), suggestion["id"])

        with pytest.raises(ResourceNotFoundException):
            suggestion_service.toggle_upvote(context_for(board_user, community), suggestion["id"])
