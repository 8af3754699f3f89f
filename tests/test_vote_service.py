"""
Tests for the vote submitter and vote retrieval.
Atomic writes, duplicate protection and finalized-allocation checks.
"""

import pytest
from sqlalchemy.exc import OperationalError
from pointpoll.core.exceptions import (
    AlreadyVotedError,
    EmptyAllocationError,
    InvalidAllocationError,
    InvalidChoiceError,
    NotFullyAllocatedError,
    PersistenceFailureError,
    PollNotFoundError,
)
from pointpoll.models import Ballot, Vote
from pointpoll.services import results_service, vote_service
from pointpoll.services.allocation_service import AT_LEAST_ONE


def count_votes(db, poll_id):
    return db.query(Vote).filter(Vote.poll_id == poll_id).count()


class TestSubmitAllocation:
    def test_writes_one_row_per_choice(self, db, user, poll, choice_ids):
        a, b, _ = choice_ids

        votes = vote_service.submit_allocation(db, poll.id, user.id, {a: 70, b: 30})

        assert len(votes) == 2
        rows = db.query(Vote).filter(Vote.poll_id == poll.id).all()
        assert {(r.choice_id, r.points, r.user_id) for r in rows} == {
            (a, 70, user.id),
            (b, 30, user.id),
        }
        assert vote_service.has_voted(db, poll.id, user.id)

    def test_second_submission_is_rejected(self, db, user, poll, choice_ids):
        a, b, c = choice_ids
        vote_service.submit_allocation(db, poll.id, user.id, {a: 100})

        with pytest.raises(AlreadyVotedError):
            vote_service.submit_allocation(db, poll.id, user.id, {b: 50, c: 50})

        assert count_votes(db, poll.id) == 1

    def test_writes_one_ballot_for_the_vote_set(self, db, user, poll, choice_ids):
        a, b, c = choice_ids

        votes = vote_service.submit_allocation(db, poll.id, user.id, {a: 20, b: 30, c: 50})

        ballot = db.query(Ballot).filter(Ballot.poll_id == poll.id, Ballot.user_id == user.id).one()
        assert {vote.ballot_id for vote in votes} == {ballot.id}

    def test_racing_submission_from_same_voter_is_rejected(
        self, db, user, poll, choice_ids, session_factory, monkeypatch
    ):
        """Another request commits between the duplicate check and the insert."""
        a, b, c = choice_ids
        real_has_voted = vote_service.has_voted
        raced = []

        def has_voted_then_other_request_commits(session, poll_id, voter_id):
            if raced:
                return real_has_voted(session, poll_id, voter_id)
            raced.append(True)
            other = session_factory()
            try:
                vote_service.submit_allocation(other, poll_id, voter_id, {b: 50, c: 50})
            finally:
                other.close()
            # the check itself ran before the other request landed
            return False

        monkeypatch.setattr(vote_service, "has_voted", has_voted_then_other_request_commits)

        with pytest.raises(AlreadyVotedError):
            vote_service.submit_allocation(db, poll.id, user.id, {a: 100})

        stored = db.query(Vote).filter(Vote.poll_id == poll.id, Vote.user_id == user.id).all()
        assert sum(vote.points for vote in stored) == 100
        assert {vote.choice_id for vote in stored} == {b, c}
        assert db.query(Ballot).filter(Ballot.poll_id == poll.id).count() == 1

    def test_unknown_voter_is_a_persistence_failure(self, db, poll, choice_ids):
        """Constraint violations other than a duplicate ballot are not AlreadyVoted."""
        with pytest.raises(PersistenceFailureError):
            vote_service.submit_allocation(db, poll.id, "deleted-voter", {choice_ids[0]: 100})

        assert count_votes(db, poll.id) == 0
        assert db.query(Ballot).count() == 0

    def test_partial_allocation_rejected_under_full_policy(self, db, user, poll, choice_ids):
        with pytest.raises(NotFullyAllocatedError):
            vote_service.submit_allocation(db, poll.id, user.id, {choice_ids[0]: 90})

        assert count_votes(db, poll.id) == 0

    def test_partial_allocation_accepted_under_at_least_one(self, db, user, poll, choice_ids):
        vote_service.submit_allocation(db, poll.id, user.id, {choice_ids[0]: 5}, policy=AT_LEAST_ONE)

        assert count_votes(db, poll.id) == 1

    def test_empty_allocation_rejected(self, db, user, poll):
        with pytest.raises(EmptyAllocationError):
            vote_service.submit_allocation(db, poll.id, user.id, {})

    def test_zero_or_negative_entries_rejected(self, db, user, poll, choice_ids):
        a, b, _ = choice_ids

        with pytest.raises(InvalidAllocationError):
            vote_service.submit_allocation(db, poll.id, user.id, {a: 100, b: 0})

    def test_over_budget_rejected(self, db, user, poll, choice_ids):
        a, b, _ = choice_ids

        with pytest.raises(InvalidAllocationError):
            vote_service.submit_allocation(db, poll.id, user.id, {a: 100, b: 1})

    def test_choice_from_another_poll_rejected(self, db, user, poll):
        with pytest.raises(InvalidChoiceError):
            vote_service.submit_allocation(db, poll.id, user.id, {"not-a-choice": 100})

    def test_unknown_poll(self, db, user):
        with pytest.raises(PollNotFoundError):
            vote_service.submit_allocation(db, "missing", user.id, {"x": 100})

    def test_failed_commit_leaves_no_rows(self, db, user, poll, choice_ids, monkeypatch):
        """A persistence failure surfaces and nothing is visible to aggregation."""
        a, b, _ = choice_ids

        def broken_commit():
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", broken_commit)

        with pytest.raises(PersistenceFailureError):
            vote_service.submit_allocation(db, poll.id, user.id, {a: 60, b: 40})

        monkeypatch.undo()
        assert count_votes(db, poll.id) == 0
        assert results_service.get_poll_results(db, poll.id).grand_total == 0

    def test_publishes_change_notification(self, db, user, poll, choice_ids, monkeypatch):
        published = []
        monkeypatch.setattr(vote_service.broadcaster, "publish", published.append)

        vote_service.submit_allocation(db, poll.id, user.id, {choice_ids[0]: 100})

        assert published == [poll.id]


class TestVoteRetrieval:
    def test_get_poll_votes_returns_every_row(self, db, make_user, poll, choice_ids):
        a, b, c = choice_ids
        v1, v2 = make_user(), make_user()
        vote_service.submit_allocation(db, poll.id, v1.id, {a: 40, b: 60})
        vote_service.submit_allocation(db, poll.id, v2.id, {c: 100})

        rows = vote_service.get_poll_votes(db, poll.id)

        assert len(rows) == 3
        assert sum(r["points"] for r in rows) == 200
        assert {r["user_id"] for r in rows} == {v1.id, v2.id}

    def test_voter_allocations_sorted_by_points(self, db, user, poll, choice_ids):
        a, b, c = choice_ids
        vote_service.submit_allocation(db, poll.id, user.id, {a: 20, b: 50, c: 30})

        mine = vote_service.get_voter_allocations(db, poll.id, user.id)

        assert [item["points"] for item in mine["allocations"]] == [50, 30, 20]
        assert mine["allocations"][0]["choice_text"] == "Sushi"
        assert mine["total_points"] == 100

    def test_voter_allocations_empty_before_voting(self, db, user, poll):
        mine = vote_service.get_voter_allocations(db, poll.id, user.id)

        assert mine["allocations"] == []
        assert mine["total_points"] == 0

    def test_vote_history_lists_voted_polls(self, db, user, make_user, poll, choice_ids):
        from pointpoll.services import poll_service

        other = poll_service.create_poll(db, make_user(), "Offsite", None, ["Beach", "Mountains"])
        untouched = poll_service.create_poll(db, user, "Untouched", None, ["Yes", "No"])

        vote_service.submit_allocation(db, poll.id, user.id, {choice_ids[0]: 100})
        vote_service.submit_allocation(db, other.id, user.id, {c.id: 50 for c in other.choices})

        history = vote_service.get_vote_history(db, user.id)

        assert {item["id"] for item in history} == {poll.id, other.id}
        assert untouched.id not in {item["id"] for item in history}
        assert all(item["total_points"] == 100 for item in history)
        assert all(item["last_voted_at"] is not None for item in history)

    def test_vote_history_limit(self, db, user, poll, choice_ids):
        vote_service.submit_allocation(db, poll.id, user.id, {choice_ids[0]: 100})

        assert len(vote_service.get_vote_history(db, user.id, limit=1)) == 1
        assert vote_service.get_vote_history(db, "nobody") == []


class TestPollResultsFromDatabase:
    def test_results_reflect_stored_votes(self, db, make_user, poll, choice_ids):
        a, b, c = choice_ids
        vote_service.submit_allocation(db, poll.id, make_user().id, {a: 100})
        vote_service.submit_allocation(db, poll.id, make_user().id, {b: 100})

        results = results_service.get_poll_results(db, poll.id)

        assert results.total_voters == 2
        assert results.consensus_score == 25
        assert [r.choice_text for r in results.choices] == ["Pizza", "Sushi", "Tacos"]

    def test_unknown_poll(self, db):
        with pytest.raises(PollNotFoundError):
            results_service.get_poll_results(db, "missing")
