# campusvote/election/tally.py

from dataclasses import dataclass
from typing import Iterator, List

from campusvote.election.models import Candidate, Position


@dataclass(frozen=True)
class TallyEntry:
    candidate: Candidate
    percentage: float
    is_leader: bool

    @property
    def display_percentage(self) -> str:
        if self.percentage == 0:
            return '0'
        return f"{self.percentage:.1f}"

    def to_dict(self) -> dict:
        data = self.candidate.to_dict()
        data['percentage'] = round(self.percentage, 1)
        data['isLeader'] = self.is_leader
        return data


class Tally:
    """Live result for one position.

    Iterating yields candidates by vote count, highest first; equal counts keep
    their order in the candidate list. Each iteration re-reads the candidate
    list, so the same Tally can be walked again after more votes come in.
    """

    def __init__(self, position: Position, candidates: List[Candidate]):
        self.position = position
        self._candidates = candidates

    def _ranked(self):
        running = [c for c in self._candidates if c.position is self.position]
        # sorted() is stable
        return sorted(running, key=lambda c: c.votes, reverse=True)

    @property
    def total_votes(self) -> int:
        return sum(c.votes for c in self._candidates if c.position is self.position)

    def __iter__(self) -> Iterator[TallyEntry]:
        ranked = self._ranked()
        total = sum(c.votes for c in ranked)
        top = ranked[0].votes if ranked else 0
        sole_leader = top > 0 and sum(1 for c in ranked if c.votes == top) == 1
        for index, candidate in enumerate(ranked):
            percentage = candidate.votes / total * 100 if total > 0 else 0.0
            yield TallyEntry(
                candidate=candidate,
                percentage=percentage,
                is_leader=sole_leader and index == 0,
            )

    def leader(self):
        for entry in self:
            return entry.candidate if entry.is_leader else None
        return None

    def to_dict(self) -> dict:
        return {
            'position': self.position.value,
            'totalVotes': self.total_votes,
            'candidates': [entry.to_dict() for entry in self],
        }
