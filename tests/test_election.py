import pytest

from campusvote.election.errors import (
    AlreadyActedError,
    AlreadyRegisteredError,
    AlreadyVotedError,
    MissingManifestoError,
    NotAuthenticatedError,
    PositionMismatchError,
    UnknownCandidateError,
    UnknownPositionError,
    ValidationError,
)
from campusvote.election.models import INITIAL_CANDIDATES, Position, VoterIdentity
from campusvote.election.state_machine import Election
from campusvote.storage.stores import BallotStore, CandidateStore


def total_votes(election):
    return sum(c.votes for c in election.candidates)


def test_initialize_seeds_and_persists_roster(election, kv):
    """A fresh store is seeded with the initial roster and the seed is written back."""
    assert [c.name for c in election.candidates] == [c.name for c in INITIAL_CANDIDATES]
    assert CandidateStore(kv).load() == election.candidates
    assert len(election.ballot) == 0


def test_seed_roster_is_not_shared_between_stores(make_election, voter):
    election = make_election(voter)
    election.vote('1', Position.PRESIDENT)
    assert INITIAL_CANDIDATES[0].votes == 42


def test_vote_scenario_for_president(election, kv, voter):
    """R23CS001 votes for Aarav Sharma: 42 -> 43, a second President vote changes nothing."""
    aarav = election.find_candidate('1')
    assert aarav.name == 'Aarav Sharma'
    assert aarav.votes == 42

    election.vote('1', 'President')

    assert election.find_candidate('1').votes == 43
    assert election.ballot.get(Position.PRESIDENT) == '1'
    assert BallotStore(kv).load(voter.roll_number).get(Position.PRESIDENT) == '1'

    with pytest.raises(AlreadyVotedError):
        election.vote('1', 'President')
    assert election.find_candidate('1').votes == 43


def test_second_vote_for_other_candidate_counts_once(election):
    before = total_votes(election)
    election.vote('1', Position.PRESIDENT)
    with pytest.raises(AlreadyActedError):
        election.vote('2', Position.PRESIDENT)
    assert total_votes(election) == before + 1
    assert election.find_candidate('2').votes == 38
    assert election.ballot.get(Position.PRESIDENT) == '1'


def test_ballot_survives_reload(make_election, voter):
    first = make_election(voter)
    first.vote('3', Position.SECRETARY)

    reloaded = make_election(voter)
    assert reloaded.has_voted(Position.SECRETARY)
    assert reloaded.find_candidate('3').votes == 28
    with pytest.raises(AlreadyVotedError):
        reloaded.vote('3', Position.SECRETARY)
    assert reloaded.find_candidate('3').votes == 28


def test_ballots_are_per_voter(make_election, voter, other_voter):
    make_election(voter).vote('1', Position.PRESIDENT)
    other = make_election(other_voter)
    assert not other.has_voted(Position.PRESIDENT)
    other.vote('2', Position.PRESIDENT)
    assert other.find_candidate('1').votes == 43
    assert other.find_candidate('2').votes == 39


def test_vote_rejects_position_mismatch(election):
    with pytest.raises(PositionMismatchError):
        election.vote('3', Position.PRESIDENT)  # Rohan runs for Secretary
    assert election.find_candidate('3').votes == 27
    assert not election.has_voted(Position.PRESIDENT)


def test_vote_rejects_unknown_candidate_and_position(election):
    before = total_votes(election)
    with pytest.raises(UnknownCandidateError):
        election.vote('does-not-exist', Position.PRESIDENT)
    with pytest.raises(UnknownPositionError):
        election.vote('1', 'Treasurer')
    assert total_votes(election) == before
    assert len(election.ballot) == 0


def test_vote_requires_session(make_election):
    election = make_election()
    with pytest.raises(NotAuthenticatedError):
        election.vote('1', Position.PRESIDENT)


def test_voting_progress(election):
    assert election.voting_progress == 0
    election.vote('1', Position.PRESIDENT)
    election.vote('5', Position.CULTURAL_SECRETARY)
    assert election.voting_progress == pytest.approx(2 / 5)


def test_register_candidate(kv, voter):
    election = Election(CandidateStore(kv), BallotStore(kv), id_factory=lambda: 'new-id')
    election.initialize(voter)

    candidate = election.register_candidate(voter, 'Vice President', '  Cleaner campus  ')

    assert candidate.id == 'new-id'
    assert candidate.votes == 0
    assert candidate.manifesto == 'Cleaner campus'
    assert candidate.position is Position.VICE_PRESIDENT
    assert candidate.roll_number == voter.roll_number
    assert CandidateStore(kv).load()[-1] == candidate


def test_register_generates_unique_ids(make_election, voter, other_voter):
    first = make_election(voter).register_candidate(voter, Position.SECRETARY, 'One')
    second = make_election(other_voter).register_candidate(other_voter, Position.SECRETARY, 'Two')
    assert first.id != second.id


def test_register_once_across_all_positions(election, voter):
    election.register_candidate(voter, Position.PRESIDENT, 'Better wifi')
    count = len(election.candidates)
    with pytest.raises(AlreadyRegisteredError) as excinfo:
        election.register_candidate(voter, Position.SPORTS_SECRETARY, 'More leagues')
    assert 'President' in str(excinfo.value)
    assert len(election.candidates) == count


def test_register_rejects_existing_roll_number(make_election, kv):
    aarav = VoterIdentity('Aarav Sharma', 'R21CS104', 'R21CS104', 'aarav@reva.edu.in', '9000000000')
    election = make_election(aarav)
    with pytest.raises(AlreadyRegisteredError):
        election.register_candidate(aarav, Position.SECRETARY, 'Anything')
    assert len(CandidateStore(kv).load()) == len(INITIAL_CANDIDATES)


def test_register_roll_number_match_ignores_case(make_election, kv):
    # stored as R21CS104 in the initial roster
    aarav = VoterIdentity('Aarav Sharma', 'r21cs104', 'r21cs104', 'aarav@reva.edu.in', '9000000000')
    election = make_election(aarav)
    with pytest.raises(AlreadyRegisteredError) as excinfo:
        election.register_candidate(aarav, Position.VICE_PRESIDENT, 'Anything')
    assert 'President' in str(excinfo.value)
    assert len(CandidateStore(kv).load()) == len(INITIAL_CANDIDATES)


def test_register_rejects_empty_manifesto(election, voter, kv):
    with pytest.raises(MissingManifestoError) as excinfo:
        election.register_candidate(voter, Position.PRESIDENT, '')
    assert isinstance(excinfo.value, ValidationError)
    with pytest.raises(MissingManifestoError):
        election.register_candidate(voter, Position.PRESIDENT, '   ')
    assert len(CandidateStore(kv).load()) == len(INITIAL_CANDIDATES)


def test_registered_candidate_can_receive_votes(make_election, voter, other_voter):
    nominee = make_election(voter).register_candidate(voter, Position.VICE_PRESIDENT, 'Open labs')
    election = make_election(other_voter)
    election.vote(nominee.id, Position.VICE_PRESIDENT)
    assert election.find_candidate(nominee.id).votes == 1


def test_filter_candidates(election):
    assert [c.id for c in election.filter_candidates(Position.PRESIDENT)] == ['1', '2']
    assert [c.id for c in election.filter_candidates('President', 'PRIYA')] == ['2']
    assert [c.id for c in election.filter_candidates('President', 'r21cs')] == ['1']
    assert election.filter_candidates('President', 'Rohan') == []


def test_filter_candidates_does_not_persist(election, kv):
    before = kv.load('reva_candidates')
    election.filter_candidates(Position.SECRETARY, 'rohan')
    assert kv.load('reva_candidates') == before


def test_end_session_discards_memory_not_store(make_election, voter, kv):
    election = make_election(voter)
    election.vote('1', Position.PRESIDENT)
    election.end_session()

    assert not election.is_authenticated
    assert election.candidates == []
    with pytest.raises(NotAuthenticatedError):
        election.vote('2', Position.PRESIDENT)
    assert BallotStore(kv).load(voter.roll_number).get(Position.PRESIDENT) == '1'


def test_failed_ballot_write_keeps_count(voter, kv):
    class FailingBallotStore(BallotStore):
        def save(self, roll_number, ballot):
            return False

    election = Election(CandidateStore(kv), FailingBallotStore(kv))
    election.initialize(voter)
    election.vote('1', Position.PRESIDENT)

    assert CandidateStore(kv).load()[0].votes == 43
    assert election.has_voted(Position.PRESIDENT)
