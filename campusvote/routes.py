# campusvote/routes.py

# JSON API for the student election. Each request gets its own Election built
# from the stores and kept on flask.g; views never touch the stores directly
# for candidate or ballot data.

import asyncio
import logging

from flask import g, jsonify, request, session
from flask_jwt_extended import (
    create_access_token,
    get_jwt_identity,
    jwt_required,
    set_access_cookies,
    unset_jwt_cookies,
)

from campusvote import app, db, limiter
from campusvote.authentication.credentials import CredentialValidator
from campusvote.authentication.otp import OtpService
from campusvote.election.errors import ElectionError, NotAuthenticatedError, ValidationError
from campusvote.election.models import Position
from campusvote.election.state_machine import Election
from campusvote.manifesto.generator import GeminiManifestoGenerator, ManifestoDrafter
from campusvote.storage.kv_store import DatabaseKeyValueStore, SessionKeyValueStore
from campusvote.storage.stores import BallotStore, CandidateStore, ProfileStore

logger = logging.getLogger(__name__)

OTP_CHALLENGE_KEY = 'otp_challenge_id'
MAX_MANIFESTO_LENGTH = 2000

validator = CredentialValidator(app.config['UNIVERSITY_EMAIL_DOMAIN'])
otp_service = OtpService(
    DatabaseKeyValueStore(db),
    resend_seconds=app.config['OTP_RESEND_SECONDS'],
    strict=app.config['OTP_STRICT'],
)
app.extensions['manifesto_drafter'] = ManifestoDrafter(
    GeminiManifestoGenerator(
        api_key=app.config['GEMINI_API_KEY'],
        model_name=app.config['MANIFESTO_MODEL'],
    )
)


@app.errorhandler(ElectionError)
def handle_election_error(e):
    body = {'error': str(e)}
    if hasattr(e, 'retry_in'):
        body['retry_in'] = e.retry_in
    return jsonify(body), e.status_code


@app.teardown_request
def drop_election(exc):
    g.pop('election', None)


def profile_store():
    return ProfileStore(SessionKeyValueStore())


def get_election() -> Election:
    """Election for the logged-in voter, built once per request."""
    if 'election' not in g:
        voter = profile_store().load()
        if voter is None or voter.roll_number != get_jwt_identity():
            raise NotAuthenticatedError()
        kv = DatabaseKeyValueStore(db)
        election = Election(CandidateStore(kv), BallotStore(kv))
        election.initialize(voter)
        g.election = election
    return g.election


def _json_body():
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _text(body, name, max_length=MAX_MANIFESTO_LENGTH):
    value = body.get(name)
    if value is None:
        return ''
    return validator.sanitize_string(value, max_length=max_length)


# -- authentication -------------------------------------------------------

@app.route('/api/auth/otp', methods=['POST'])
@limiter.limit("5/minute")
def request_otp():
    identity = validator.validate_login_details(_json_body())
    otp_service.cancel(session.get(OTP_CHALLENGE_KEY))
    challenge_id = otp_service.issue_challenge(identity)
    session[OTP_CHALLENGE_KEY] = challenge_id
    return jsonify({
        'message': f'OTP sent to {identity.phone}',
        'phone': identity.phone,
        'resend_in': otp_service.seconds_until_resend(challenge_id),
    })


@app.route('/api/auth/otp/resend', methods=['POST'])
def resend_otp():
    challenge_id = session.get(OTP_CHALLENGE_KEY)
    otp_service.resend(challenge_id)
    return jsonify({
        'message': f"OTP has been resent to {otp_service.identity(challenge_id).phone}",
        'resend_in': otp_service.seconds_until_resend(challenge_id),
    })


@app.route('/api/auth/verify', methods=['POST'])
def verify_otp():
    challenge_id = session.get(OTP_CHALLENGE_KEY)
    code = _json_body().get('otp', '')
    if isinstance(code, list):
        code = ''.join(str(digit) for digit in code)
    identity = otp_service.complete(challenge_id, str(code))

    session.pop(OTP_CHALLENGE_KEY, None)
    profile_store().save(identity)
    logger.info(f"Voter {identity.roll_number} logged in")

    resp = jsonify({'user': identity.to_dict()})
    set_access_cookies(resp, create_access_token(identity=identity.roll_number))
    return resp


@app.route('/api/session')
def current_session():
    voter = profile_store().load()
    if voter is None:
        raise NotAuthenticatedError()
    return jsonify({'user': voter.to_dict()})


@app.route('/api/auth/logout', methods=['POST'])
def logout():
    otp_service.cancel(session.get(OTP_CHALLENGE_KEY))
    profile_store().clear()
    session.clear()
    resp = jsonify({'message': 'Logged out'})
    unset_jwt_cookies(resp)
    return resp


# -- election -------------------------------------------------------------

@app.route('/api/positions')
def positions():
    return jsonify({'positions': [p.value for p in Position]})


@app.route('/api/candidates')
@jwt_required()
def list_candidates():
    election = get_election()
    position = Position.parse(request.args.get('position', Position.PRESIDENT.value))
    matches = election.filter_candidates(position, request.args.get('q', ''))
    return jsonify({
        'position': position.value,
        'voted_for': election.ballot.get(position),
        'candidates': [c.to_dict() for c in matches],
    })


@app.route('/api/candidates', methods=['POST'])
@jwt_required()
def register_candidate():
    election = get_election()
    body = _json_body()
    manifesto = _text(body, 'manifesto') or _text(body, 'key_points')
    candidate = election.register_candidate(
        election.voter, body.get('position', Position.PRESIDENT.value), manifesto)
    return jsonify({
        'message': 'Successfully registered! Good luck.',
        'candidate': candidate.to_dict(),
    }), 201


@app.route('/api/votes', methods=['POST'])
@jwt_required()
def cast_vote():
    election = get_election()
    body = _json_body()
    candidate_id = body.get('candidate_id')
    position = body.get('position')
    if not candidate_id or not position:
        raise ValidationError("candidate_id and position are required.")
    candidate = election.vote(str(candidate_id), position)
    return jsonify({
        'message': f'Vote cast for {candidate.position.value}.',
        'candidate': candidate.to_dict(),
        'progress': election.voting_progress,
    })


@app.route('/api/ballot')
@jwt_required()
def ballot():
    election = get_election()
    return jsonify({
        'votes': election.ballot.to_dict(),
        'progress': election.voting_progress,
    })


@app.route('/api/results')
@jwt_required()
def results():
    election = get_election()
    return jsonify({'results': [tally.to_dict() for tally in election.results()]})


@app.route('/api/results/<position>')
@jwt_required()
def position_results(position):
    return jsonify(get_election().tally(position).to_dict())


@app.route('/api/manifesto', methods=['POST'])
@jwt_required()
@limiter.limit("10/minute")
def generate_manifesto():
    election = get_election()
    body = _json_body()
    drafter = app.extensions['manifesto_drafter']
    manifesto = asyncio.run(drafter.draft(
        election.voter,
        body.get('position', Position.PRESIDENT.value),
        _text(body, 'key_points'),
    ))
    return jsonify({'manifesto': manifesto})
