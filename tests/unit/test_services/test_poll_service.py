import pytest
from datetime import timedelta
from app.core.clock import ensure_utc
from app.services.poll_service import PollService, poll_state, can_see_results, percentage
from app.schemas.poll import PollCreate, PollUpdate
from app.models.poll import Poll, PollState, PollType, ResultsVisibility
from app.core.exception import (
    AuthorizationException,
    ResourceNotFoundException,
    ValidationException,
    PollNotOpenException,
    PollClosedException,
    EmptySelectionException,
    InvalidSelectionCountException,
    InvalidOptionException,
    PollTypeLockedException,
)


def option_ids(poll: Poll) -> list:
    return [option.id for option in poll.options]


@pytest.fixture
def poll_service(db_session, clock):
    return PollService(db_session, clock)


@pytest.fixture
def fence_poll(poll_service, context_for, board_user, community, clock):
    """Single-choice poll closing in one day, results after close."""
    return poll_service.create_poll(
        context_for(board_user, community),
        PollCreate(
            question="Repaint the fence?",
            options=["Yes", "No"],
            closes_at=clock.now() + timedelta(days=1),
        ),
    )


@pytest.mark.unit
class TestPollWindow:
    """Poll state and results visibility as pure functions."""

    def test_state_boundaries(self, clock):
        """Test closes_at itself still counts as open."""
        now = clock.now()
        poll = Poll(opens_at=now, closes_at=now + timedelta(hours=1))

        assert poll_state(poll, now - timedelta(seconds=1)) == PollState.NOT_YET_OPEN
        assert poll_state(poll, now) == PollState.OPEN
        assert poll_state(poll, now + timedelta(hours=1)) == PollState.OPEN
        assert poll_state(poll, now + timedelta(hours=1, seconds=1)) == PollState.CLOSED

    def test_open_ended_poll_never_closes(self, clock):
        """Test a poll without closes_at stays open."""
        poll = Poll(opens_at=clock.now(), closes_at=None)

        assert poll_state(poll, clock.now() + timedelta(days=3650)) == PollState.OPEN

    def test_visibility_rules(self, clock):
        """Test who may see results before and after close."""
        now = clock.now()
        closes = now + timedelta(days=1)

        after_close = Poll(opens_at=now, closes_at=closes, results_visible=ResultsVisibility.AFTER_CLOSE)
        assert can_see_results(after_close, is_board=True, has_voted=False, now=now)
        assert not can_see_results(after_close, is_board=False, has_voted=True, now=now)
        assert can_see_results(after_close, is_board=False, has_voted=False, now=closes + timedelta(seconds=1))

        after_vote = Poll(opens_at=now, closes_at=closes, results_visible=ResultsVisibility.AFTER_VOTE)
        assert not can_see_results(after_vote, is_board=False, has_voted=False, now=now)
        assert can_see_results(after_vote, is_board=False, has_voted=True, now=now)

        always = Poll(opens_at=now, closes_at=closes, results_visible=ResultsVisibility.ALWAYS)
        assert can_see_results(always, is_board=False, has_voted=False, now=now)

    def test_percentage(self):
        """Test rounding and the empty poll."""
        assert percentage(0, 0) == 0
        assert percentage(1, 3) == 33
        assert percentage(2, 3) == 67
        assert percentage(3, 3) == 100
        assert percentage(1, 8) == 13


@pytest.mark.unit
class TestPollService:
    """Poll CRUD and voting."""

    def test_create_poll(self, fence_poll, clock):
        """Test options keep their order and opens_at defaults to now."""
        assert [o.option_text for o in fence_poll.options] == ["Yes", "No"]
        assert [o.display_order for o in fence_poll.options] == [0, 1]
        assert fence_poll.poll_type == PollType.SINGLE
        assert ensure_utc(fence_poll.opens_at) == clock.now()

    def test_create_poll_requires_board(self, poll_service, context_for, resident_user, community):
        """Test residents cannot create polls."""
        with pytest.raises(AuthorizationException):
            poll_service.create_poll(
                context_for(resident_user, community),
                PollCreate(question="Pool hours?", options=["8am", "9am"]),
            )

    def test_create_poll_needs_two_options(self):
        """Test blank options do not count."""
        with pytest.raises(ValueError):
            PollCreate(question="Pool hours?", options=["8am", "   "])

    def test_create_poll_close_before_open(self, poll_service, context_for, board_user, community, clock):
        """Test the window must be forward in time."""
        with pytest.raises(ValidationException):
            poll_service.create_poll(
                context_for(board_user, community),
                PollCreate(
                    question="Pool hours?",
                    options=["8am", "9am"],
                    opens_at=clock.now(),
                    closes_at=clock.now() - timedelta(hours=1),
                ),
            )

    def test_vote_replaces_previous_ballot(self, poll_service, fence_poll, context_for, resident_user, community):
        """Test voting again swaps the selection instead of adding to it."""
        ctx = context_for(resident_user, community)
        yes, no = option_ids(fence_poll)

        poll_service.cast_vote(ctx, fence_poll.id, [yes])
        poll_service.cast_vote(ctx, fence_poll.id, [no])

        assert poll_service.poll_repo.get_user_votes(fence_poll.id, resident_user.id) == [no]
        assert poll_service.poll_repo.get_option_counts(fence_poll.id) == {no: 1}

    def test_fence_results_after_close(
        self, poll_service, fence_poll, context_for, resident_user, board_user, community, clock
    ):
        """Test a resident sees final tallies once the poll has closed."""
        resident_ctx = context_for(resident_user, community)
        yes, no = option_ids(fence_poll)
        poll_service.cast_vote(resident_ctx, fence_poll.id, [yes])
        poll_service.cast_vote(context_for(board_user, community), fence_poll.id, [yes])

        before = poll_service.get_poll_detail(resident_ctx, fence_poll.id)
        assert before["state"] == PollState.OPEN
        assert before["has_voted"] is True
        assert before["can_see_results"] is False
        assert before["results"] is None
        assert before["seconds_remaining"] == 86400

        clock.advance(days=2)
        after = poll_service.get_poll_detail(resident_ctx, fence_poll.id)

        assert after["state"] == PollState.CLOSED
        assert after["seconds_remaining"] is None
        results = {o["option_text"]: o for o in after["results"]["options"]}
        assert results["Yes"]["vote_count"] == 2
        assert results["Yes"]["percentage"] == 100
        assert results["No"]["percentage"] == 0
        assert after["results"]["participation_count"] == 2

    def test_vote_after_close(self, poll_service, fence_poll, context_for, resident_user, community, clock):
        """Test ballots are refused once the poll has closed."""
        clock.advance(days=1, seconds=1)

        with pytest.raises(PollClosedException):
            poll_service.cast_vote(context_for(resident_user, community), fence_poll.id, option_ids(fence_poll)[:1])

    def test_vote_at_close_instant(self, poll_service, fence_poll, context_for, resident_user, community, clock):
        """Test a ballot exactly at closes_at is accepted."""
        clock.advance(days=1)

        poll_service.cast_vote(context_for(resident_user, community), fence_poll.id, option_ids(fence_poll)[:1])

    def test_vote_before_open(self, poll_service, context_for, board_user, resident_user, community, clock):
        """Test ballots are refused before the poll opens."""
        poll = poll_service.create_poll(
            context_for(board_user, community),
            PollCreate(question="Budget?", options=["A", "B"], opens_at=clock.now() + timedelta(hours=2)),
        )

        with pytest.raises(PollNotOpenException):
            poll_service.cast_vote(context_for(resident_user, community), poll.id, option_ids(poll)[:1])

    def test_single_choice_selection_count(self, poll_service, fence_poll, context_for, resident_user, community):
        """Test a single-choice poll takes exactly one option."""
        ctx = context_for(resident_user, community)
        yes, no = option_ids(fence_poll)

        with pytest.raises(InvalidSelectionCountException):
            poll_service.cast_vote(ctx, fence_poll.id, [yes, no])
        with pytest.raises(EmptySelectionException):
            poll_service.cast_vote(ctx, fence_poll.id, [])

    def test_invalid_option(self, poll_service, fence_poll, context_for, resident_user, community):
        """Test options from elsewhere are rejected and nothing is recorded."""
        ctx = context_for(resident_user, community)

        with pytest.raises(InvalidOptionException) as exc_info:
            poll_service.cast_vote(ctx, fence_poll.id, [9999])

        assert exc_info.value.option_ids == [9999]
        assert poll_service.poll_repo.has_voted(fence_poll.id, resident_user.id) is False

    def test_failed_ballot_keeps_previous_vote(self, poll_service, fence_poll, context_for, resident_user, community):
        """Test a rejected ballot leaves the earlier one in place."""
        ctx = context_for(resident_user, community)
        yes, _ = option_ids(fence_poll)
        poll_service.cast_vote(ctx, fence_poll.id, [yes])

        with pytest.raises(InvalidOptionException):
            poll_service.cast_vote(ctx, fence_poll.id, [9999])

        assert poll_service.poll_repo.get_user_votes(fence_poll.id, resident_user.id) == [yes]

    def test_multiple_choice_counts_rows(self, poll_service, context_for, board_user, resident_user, community):
        """Test percentages are shares of all vote rows and duplicates count once."""
        poll = poll_service.create_poll(
            context_for(board_user, community),
            PollCreate(
                question="Which amenities?",
                poll_type=PollType.MULTIPLE,
                results_visible=ResultsVisibility.AFTER_VOTE,
                options=["Pool", "Gym", "Garden"],
            ),
        )
        pool, gym, garden = option_ids(poll)
        resident_ctx = context_for(resident_user, community)

        assert poll_service.cast_vote(resident_ctx, poll.id, [pool, gym, pool]) == [pool, gym]
        poll_service.cast_vote(context_for(board_user, community), poll.id, [pool])

        detail = poll_service.get_poll_detail(resident_ctx, poll.id)
        results = {o["id"]: o for o in detail["results"]["options"]}
        assert detail["results"]["total_votes"] == 3
        assert detail["results"]["participation_count"] == 2
        assert results[pool]["percentage"] == 67
        assert results[gym]["percentage"] == 33
        assert results[garden]["percentage"] == 0
        assert [v["name"] for v in results[pool]["voters"]] == ["Carol Resident", "Bob Board"]

    def test_anonymous_poll_hides_voters(self, poll_service, context_for, board_user, resident_user, community):
        """Test voter identities are omitted for anonymous polls."""
        poll = poll_service.create_poll(
            context_for(board_user, community),
            PollCreate(question="Raise dues?", is_anonymous=True, options=["Yes", "No"]),
        )
        poll_service.cast_vote(context_for(resident_user, community), poll.id, option_ids(poll)[:1])

        results = poll_service.get_results(poll)

        assert all(option["voters"] is None for option in results["options"])

    def test_list_polls_counts_voters(self, poll_service, fence_poll, context_for, resident_user, community):
        """Test the summary counts distinct voters."""
        ctx = context_for(resident_user, community)
        poll_service.cast_vote(ctx, fence_poll.id, option_ids(fence_poll)[:1])

        summaries = poll_service.list_polls(ctx)

        assert summaries[0]["vote_count"] == 1
        assert summaries[0]["state"] == PollState.OPEN

    def test_update_poll_window(self, poll_service, fence_poll, context_for, board_user, community, clock):
        """Test the close time can move but not before the open time."""
        ctx = context_for(board_user, community)

        updated = poll_service.update_poll(
            ctx, fence_poll.id, PollUpdate(closes_at=clock.now() + timedelta(days=7))
        )
        assert updated.question == "Repaint the fence?"

        with pytest.raises(ValidationException):
            poll_service.update_poll(ctx, fence_poll.id, PollUpdate(closes_at=clock.now() - timedelta(days=7)))

    def test_poll_type_locked_after_votes(
        self, poll_service, fence_poll, context_for, board_user, resident_user, community
    ):
        """Test the poll type can change only while nobody has voted."""
        ctx = context_for(board_user, community)

        switched = poll_service.update_poll(ctx, fence_poll.id, PollUpdate(poll_type=PollType.MULTIPLE))
        assert switched.poll_type == PollType.MULTIPLE

        poll_service.cast_vote(context_for(resident_user, community), fence_poll.id, option_ids(fence_poll))

        with pytest.raises(PollTypeLockedException) as exc_info:
            poll_service.update_poll(ctx, fence_poll.id, PollUpdate(poll_type=PollType.SINGLE))

        assert exc_info.value.status_code == 409
        renamed = poll_service.update_poll(
            ctx, fence_poll.id, PollUpdate(question="Repaint the fence green?", poll_type=PollType.MULTIPLE)
        )
        assert renamed.question == "Repaint the fence green?"

    def test_delete_poll(self, poll_service, fence_poll, context_for, board_user, resident_user, community):
        """Test the board deletes polls with their votes."""
        poll_service.cast_vote(context_for(resident_user, community), fence_poll.id, option_ids(fence_poll)[:1])

        with pytest.raises(AuthorizationException):
            poll_service.delete_poll(context_for(resident_user, community), fence_poll.id)

        poll_service.delete_poll(context_for(board_user, community), fence_poll.id)

        with pytest.raises(ResourceNotFoundException):
            poll_service.get_poll_detail(context_for(board_user, community), fence_poll.id)
