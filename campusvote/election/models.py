# campusvote/election/models.py

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, Iterator, Optional

from campusvote.election.errors import AlreadyVotedError, UnknownPositionError

# Domain records for a single student election. Serialized field names match the
# keys the browser client has always written ("rollNo", "votes", "manifesto").


class Position(Enum):
    PRESIDENT = "President"
    VICE_PRESIDENT = "Vice President"
    SECRETARY = "Secretary"
    CULTURAL_SECRETARY = "Cultural Secretary"
    SPORTS_SECRETARY = "Sports Secretary"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError:
            raise UnknownPositionError(value)

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class VoterIdentity:
    name: str
    roll_number: str
    student_id: str
    email: str
    phone: str

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'rollNo': self.roll_number,
            'studentId': self.student_id,
            'email': self.email,
            'phone': self.phone,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'VoterIdentity':
        if not isinstance(data, dict):
            raise ValueError("Voter identity must be an object")
        values = {}
        for key in ('name', 'rollNo', 'email', 'phone'):
            if not isinstance(data.get(key), str):
                raise ValueError(f"Missing voter field: {key}")
            values[key] = data[key]
        return cls(
            name=values['name'],
            roll_number=values['rollNo'],
            student_id=data.get('studentId') or values['rollNo'],
            email=values['email'],
            phone=values['phone'],
        )


@dataclass
class Candidate:
    id: str
    name: str
    roll_number: str
    position: Position
    manifesto: str
    votes: int = 0

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'rollNo': self.roll_number,
            'position': self.position.value,
            'manifesto': self.manifesto,
            'votes': self.votes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Candidate':
        if not isinstance(data, dict):
            raise ValueError("Candidate must be an object")
        votes = data.get('votes', 0)
        # bool is an int subclass, reject it explicitly
        if isinstance(votes, bool) or not isinstance(votes, int) or votes < 0:
            raise ValueError(f"Invalid vote count: {votes!r}")
        try:
            position = Position(data['position'])
            return cls(
                id=str(data['id']),
                name=str(data['name']),
                roll_number=str(data['rollNo']),
                position=position,
                manifesto=str(data.get('manifesto', '')),
                votes=votes,
            )
        except KeyError as e:
            raise ValueError(f"Missing candidate field: {e}")


@dataclass
class BallotRecord:
    """Which candidate a voter chose, at most once per position."""
    choices: Dict[Position, str] = field(default_factory=dict)

    def record(self, position: Position, candidate_id: str) -> None:
        if position in self.choices:
            raise AlreadyVotedError(position.value)
        self.choices[position] = candidate_id

    def get(self, position: Position) -> Optional[str]:
        return self.choices.get(position)

    def __contains__(self, position) -> bool:
        return position in self.choices

    def __len__(self) -> int:
        return len(self.choices)

    def __iter__(self) -> Iterator[Position]:
        return iter(self.choices)

    def to_dict(self) -> dict:
        return {position.value: candidate_id for position, candidate_id in self.choices.items()}

    @classmethod
    def from_dict(cls, data: dict) -> 'BallotRecord':
        if not isinstance(data, dict):
            raise ValueError("Ballot record must be an object")
        choices = {}
        for position, candidate_id in data.items():
            if not isinstance(candidate_id, str):
                raise ValueError(f"Invalid candidate id for {position}")
            choices[Position(position)] = candidate_id
        return cls(choices=choices)


INITIAL_CANDIDATES = [
    Candidate(
        id='1',
        name='Aarav Sharma',
        roll_number='R21CS104',
        position=Position.PRESIDENT,
        manifesto='Focusing on better campus Wi-Fi, 24/7 library access, and more industry-connect workshops for CS students.',
        votes=42,
    ),
    Candidate(
        id='2',
        name='Priya Patel',
        roll_number='R22EC055',
        position=Position.PRESIDENT,
        manifesto='Advocating for sustainable campus initiatives, mental health awareness weeks, and improved canteen hygiene.',
        votes=38,
    ),
    Candidate(
        id='3',
        name='Rohan Kumar',
        roll_number='R21ME201',
        position=Position.SECRETARY,
        manifesto='I promise to streamline the event permissions process and bring more sports tournaments to Reva.',
        votes=27,
    ),
    Candidate(
        id='4',
        name='Ishaan Gupta',
        roll_number='R21CV033',
        position=Position.SPORTS_SECRETARY,
        manifesto='New equipment for the gym and regular inter-college leagues.',
        votes=15,
    ),
    Candidate(
        id='5',
        name='Ananya Singh',
        roll_number='R22BT012',
        position=Position.CULTURAL_SECRETARY,
        manifesto='More frequent cultural fests and funding for student clubs.',
        votes=56,
    ),
]


def initial_roster():
    """Fresh copies of the seed candidates, safe to mutate."""
    return [Candidate(**asdict(c)) for c in INITIAL_CANDIDATES]
