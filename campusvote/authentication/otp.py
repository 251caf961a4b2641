# campusvote/authentication/otp.py

import json
import logging
import uuid
from datetime import datetime, timedelta

import pyotp

from campusvote.election.errors import ElectionError, ValidationError
from campusvote.election.models import VoterIdentity

# One-time passcode step of the login flow.
# By default any 4-digit code is accepted. With strict mode on, the code must
# match a 4-digit TOTP derived from a per-challenge secret.
# Challenges live in a server-side key-value store; the client only ever holds
# the opaque challenge id.

logger = logging.getLogger(__name__)

OTP_DIGITS = 4
DEFAULT_RESEND_SECONDS = 60
CHALLENGE_KEY_PREFIX = 'otp_challenge_'


class OtpResendTooSoonError(ValidationError):
    status_code = 429

    def __init__(self, retry_in):
        super().__init__(f"Please wait {retry_in} seconds before requesting a new OTP.")
        self.retry_in = retry_in


class OtpChallengeMissingError(ValidationError):
    def __init__(self):
        super().__init__("Please request an OTP first.")


def challenge_key(challenge_id):
    return f"{CHALLENGE_KEY_PREFIX}{challenge_id}"


class OtpService:
    def __init__(self, kv, resend_seconds=DEFAULT_RESEND_SECONDS, strict=False):
        self.kv = kv
        self.resend_seconds = resend_seconds
        self.strict = strict

    def _now(self):
        # extracted for easier monkeypatching in tests
        return datetime.utcnow()

    def _totp(self, secret):
        return pyotp.TOTP(secret, digits=OTP_DIGITS, interval=self.resend_seconds)

    def _load(self, challenge_id) -> dict:
        if not challenge_id:
            raise OtpChallengeMissingError()
        blob = self.kv.load(challenge_key(challenge_id))
        if blob is None:
            raise OtpChallengeMissingError()
        try:
            challenge = json.loads(blob)
            VoterIdentity.from_dict(challenge['identity'])
            datetime.fromisoformat(challenge['issued_at'])
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Discarding unreadable OTP challenge {challenge_id}: {e}")
            self.kv.delete(challenge_key(challenge_id))
            raise OtpChallengeMissingError()
        return challenge

    def _store(self, challenge_id, challenge):
        if not self.kv.save(challenge_key(challenge_id), json.dumps(challenge)):
            raise ElectionError("Could not start OTP verification, please try again.")

    def issue_challenge(self, identity: VoterIdentity) -> str:
        """Start an OTP challenge for a validated identity.

        Returns the challenge id; the secret never leaves the store.
        """
        challenge_id = uuid.uuid4().hex
        challenge = {
            'identity': identity.to_dict(),
            'issued_at': self._now().isoformat(),
            'secret': pyotp.random_base32(),
        }
        self._store(challenge_id, challenge)
        self._deliver(challenge)
        return challenge_id

    def _deliver(self, challenge):
        phone = challenge['identity']['phone']
        if self.strict:
            # no SMS gateway; the code only goes to the server log
            code = self._totp(challenge['secret']).now()
            logger.info(f"OTP for {phone}: {code}")
        else:
            logger.info(f"OTP requested for {phone}")

    def identity(self, challenge_id) -> VoterIdentity:
        return VoterIdentity.from_dict(self._load(challenge_id)['identity'])

    def _remaining(self, challenge) -> int:
        issued_at = datetime.fromisoformat(challenge['issued_at'])
        remaining = issued_at + timedelta(seconds=self.resend_seconds) - self._now()
        return max(0, int(remaining.total_seconds() + 0.999))

    def seconds_until_resend(self, challenge_id) -> int:
        return self._remaining(self._load(challenge_id))

    def resend(self, challenge_id) -> None:
        challenge = self._load(challenge_id)
        retry_in = self._remaining(challenge)
        if retry_in > 0:
            raise OtpResendTooSoonError(retry_in)
        renewed = dict(challenge, issued_at=self._now().isoformat(), secret=pyotp.random_base32())
        self._store(challenge_id, renewed)
        self._deliver(renewed)

    @staticmethod
    def is_well_formed(code) -> bool:
        return isinstance(code, str) and len(code) == OTP_DIGITS and code.isascii() and code.isdigit()

    def _matches(self, challenge, code) -> bool:
        if not self.strict:
            return True
        return self._totp(challenge['secret']).verify(code, valid_window=1)

    def verify(self, challenge_id, code) -> bool:
        if not self.is_well_formed(code):
            return False
        return self._matches(self._load(challenge_id), code)

    def complete(self, challenge_id, code) -> VoterIdentity:
        """Check the code and close the challenge; it cannot be used twice."""
        if not self.is_well_formed(code):
            raise ValidationError("Please enter the complete 4-digit OTP.")
        challenge = self._load(challenge_id)
        if not self._matches(challenge, code):
            raise ValidationError("Invalid OTP.")
        self.kv.delete(challenge_key(challenge_id))
        return VoterIdentity.from_dict(challenge['identity'])

    def cancel(self, challenge_id) -> None:
        if challenge_id:
            self.kv.delete(challenge_key(challenge_id))
