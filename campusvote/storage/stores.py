# campusvote/storage/stores.py

import json
import logging
from typing import List, Optional

from campusvote.election.errors import StoreCorruptError
from campusvote.election.models import BallotRecord, Candidate, VoterIdentity

logger = logging.getLogger(__name__)

PROFILE_KEY = 'reva_evote_user'
CANDIDATES_KEY = 'reva_candidates'
BALLOT_KEY_PREFIX = 'reva_votes_'


def ballot_key(roll_number):
    return f"{BALLOT_KEY_PREFIX}{roll_number}"


class _JsonStore:
    """Typed JSON view over a key-value backend.

    Unreadable content is discarded and reported as absent.
    """

    def __init__(self, kv):
        self.kv = kv

    def _decode(self, blob, parse):
        try:
            return parse(json.loads(blob))
        except (ValueError, TypeError) as e:
            raise StoreCorruptError(f"Unreadable stored value: {e}")

    def _load(self, key, parse):
        blob = self.kv.load(key)
        if blob is None:
            return None
        try:
            return self._decode(blob, parse)
        except StoreCorruptError as e:
            logger.warning(f"Discarding corrupt entry {key}: {e}")
            self.kv.delete(key)
            return None

    def _save(self, key, value) -> bool:
        ok = self.kv.save(key, json.dumps(value))
        if not ok:
            logger.error(f"Failed to persist {key}")
        return ok


class ProfileStore(_JsonStore):
    def load(self) -> Optional[VoterIdentity]:
        return self._load(PROFILE_KEY, VoterIdentity.from_dict)

    def save(self, identity: VoterIdentity) -> bool:
        return self._save(PROFILE_KEY, identity.to_dict())

    def clear(self) -> None:
        self.kv.delete(PROFILE_KEY)


def _parse_candidates(data):
    if not isinstance(data, list):
        raise ValueError("Candidate list must be an array")
    return [Candidate.from_dict(item) for item in data]


class CandidateStore(_JsonStore):
    def load(self) -> Optional[List[Candidate]]:
        return self._load(CANDIDATES_KEY, _parse_candidates)

    def save(self, candidates: List[Candidate]) -> bool:
        return self._save(CANDIDATES_KEY, [c.to_dict() for c in candidates])


class BallotStore(_JsonStore):
    def load(self, roll_number: str) -> Optional[BallotRecord]:
        return self._load(ballot_key(roll_number), BallotRecord.from_dict)

    def save(self, roll_number: str, ballot: BallotRecord) -> bool:
        return self._save(ballot_key(roll_number), ballot.to_dict())
