# campusvote/election/errors.py
"""Exceptions raised by the election core and its collaborators.

Exception hierarchy:
- ElectionError: Base class for everything the election service raises
  - ValidationError: Bad input, nothing was mutated
    - MissingManifestoError: Nomination without manifesto text
    - UnknownPositionError: Position outside the fixed set
    - UnknownCandidateError: Candidate id not in the list
    - PositionMismatchError: Candidate runs for a different position
  - AlreadyActedError: Voter already did this, nothing was mutated
    - AlreadyVotedError: Second vote for the same position
    - AlreadyRegisteredError: Second nomination by the same roll number
  - StoreCorruptError: Persisted blob could not be decoded
  - ExternalServiceError: Manifesto provider failed
  - GenerationInProgressError: A manifesto draft is already being generated
  - NotAuthenticatedError: Operation needs an authenticated voter
"""


class ElectionError(Exception):
    """Base exception for the election service."""
    status_code = 500


class ValidationError(ElectionError):
    status_code = 400


class MissingManifestoError(ValidationError):
    def __init__(self, message="Please provide a manifesto."):
        super().__init__(message)


class UnknownPositionError(ValidationError):
    def __init__(self, position):
        super().__init__(f"Unknown position: {position}")
        self.position = position


class UnknownCandidateError(ValidationError):
    def __init__(self, candidate_id):
        super().__init__(f"Unknown candidate: {candidate_id}")
        self.candidate_id = candidate_id


class PositionMismatchError(ValidationError):
    def __init__(self, candidate_id, position):
        super().__init__(f"Candidate {candidate_id} is not running for {position}")
        self.candidate_id = candidate_id
        self.position = position


class AlreadyActedError(ElectionError):
    status_code = 409


class AlreadyVotedError(AlreadyActedError):
    def __init__(self, position):
        super().__init__(f"You have already voted for {position}.")
        self.position = position


class AlreadyRegisteredError(AlreadyActedError):
    def __init__(self, position):
        super().__init__(f"You are already registered as a candidate for {position}.")
        self.position = position


class StoreCorruptError(ElectionError):
    """Raised when a stored blob is not valid JSON or has the wrong shape."""
    pass


class ExternalServiceError(ElectionError):
    status_code = 502


class GenerationInProgressError(ElectionError):
    status_code = 409

    def __init__(self, message="A manifesto is already being generated."):
        super().__init__(message)


class NotAuthenticatedError(ElectionError):
    status_code = 401

    def __init__(self, message="Please log in first."):
        super().__init__(message)
