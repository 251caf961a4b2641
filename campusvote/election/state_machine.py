# campusvote/election/state_machine.py
"""Voting and nomination rules for a single student election.

An ``Election`` is the only writer of the candidate list and of the current
voter's ballot. It keeps the canonical in-memory copy and mirrors every change
to the candidate and ballot stores straight away.

Usage:
    election = Election(CandidateStore(kv), BallotStore(kv))
    election.initialize(voter)
    election.vote('1', Position.PRESIDENT)
    for entry in election.tally(Position.PRESIDENT):
        print(entry.candidate.name, entry.display_percentage)

The shared candidate list has no isolation between writers: two sessions that
vote at the same time each write their own copy back and the last write wins.
"""

import logging
import uuid
from typing import List, Optional

from campusvote.election.errors import (
    AlreadyRegisteredError,
    AlreadyVotedError,
    MissingManifestoError,
    NotAuthenticatedError,
    PositionMismatchError,
    UnknownCandidateError,
)
from campusvote.election.models import BallotRecord, Candidate, Position, VoterIdentity, initial_roster
from campusvote.election.tally import Tally

logger = logging.getLogger(__name__)


class Election:
    def __init__(self, candidate_store, ballot_store, id_factory=None):
        self.candidate_store = candidate_store
        self.ballot_store = ballot_store
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self.voter: Optional[VoterIdentity] = None
        self._candidates: List[Candidate] = []
        self._ballot = BallotRecord()

    # -- session ---------------------------------------------------------

    def initialize(self, voter: VoterIdentity) -> None:
        """Load the shared candidate list and this voter's ballot."""
        candidates = self.candidate_store.load()
        if candidates is None:
            candidates = initial_roster()
            self.candidate_store.save(candidates)
            logger.info("Seeded candidate list with the initial roster")
        ballot = self.ballot_store.load(voter.roll_number)
        self.voter = voter
        self._candidates = candidates
        self._ballot = ballot if ballot is not None else BallotRecord()

    def end_session(self) -> None:
        self.voter = None
        self._candidates = []
        self._ballot = BallotRecord()

    @property
    def is_authenticated(self) -> bool:
        return self.voter is not None

    def _require_voter(self) -> VoterIdentity:
        if self.voter is None:
            raise NotAuthenticatedError()
        return self.voter

    # -- reads -----------------------------------------------------------

    @property
    def candidates(self) -> List[Candidate]:
        return list(self._candidates)

    @property
    def ballot(self) -> BallotRecord:
        return BallotRecord(choices=dict(self._ballot.choices))

    def find_candidate(self, candidate_id) -> Optional[Candidate]:
        for candidate in self._candidates:
            if candidate.id == candidate_id:
                return candidate
        return None

    def has_voted(self, position) -> bool:
        return Position.parse(position) in self._ballot

    @property
    def voting_progress(self) -> float:
        return len(self._ballot) / len(Position)

    def filter_candidates(self, position, search_text='') -> List[Candidate]:
        position = Position.parse(position)
        query = (search_text or '').lower()
        return [
            c for c in self._candidates
            if c.position is position
            and (query in c.name.lower() or query in c.roll_number.lower())
        ]

    def tally(self, position) -> Tally:
        return Tally(Position.parse(position), self._candidates)

    def results(self) -> List[Tally]:
        """Tallies for every position that has at least one candidate."""
        return [
            Tally(position, self._candidates)
            for position in Position
            if any(c.position is position for c in self._candidates)
        ]

    # -- mutations -------------------------------------------------------

    def vote(self, candidate_id, position) -> Candidate:
        voter = self._require_voter()
        position = Position.parse(position)
        if position in self._ballot:
            logger.info(f"Duplicate vote attempt by {voter.roll_number} for {position}")
            raise AlreadyVotedError(position.value)

        candidate = self.find_candidate(candidate_id)
        if candidate is None:
            raise UnknownCandidateError(candidate_id)
        if candidate.position is not position:
            raise PositionMismatchError(candidate_id, position.value)

        candidate.votes += 1
        self._ballot.record(position, candidate.id)

        # Two separate writes; a failed ballot write leaves the count in place.
        self.candidate_store.save(self._candidates)
        if not self.ballot_store.save(voter.roll_number, self._ballot):
            logger.error(f"Ballot for {voter.roll_number} not persisted after counting vote for {position}")
        logger.info(f"Vote recorded for {position} by {voter.roll_number}")
        return candidate

    def register_candidate(self, voter: VoterIdentity, position, manifesto) -> Candidate:
        # the candidate list is only loaded once a session is open
        self._require_voter()
        position = Position.parse(position)
        manifesto = (manifesto or '').strip()
        if not manifesto:
            raise MissingManifestoError()

        for existing in self._candidates:
            if existing.roll_number.upper() == voter.roll_number.upper():
                raise AlreadyRegisteredError(existing.position.value)

        candidate = Candidate(
            id=self._new_id(),
            name=voter.name,
            roll_number=voter.roll_number,
            position=position,
            manifesto=manifesto,
            votes=0,
        )
        self._candidates.append(candidate)
        self.candidate_store.save(self._candidates)
        logger.info(f"{voter.roll_number} registered as candidate for {position}")
        return candidate
