# campusvote/__init__.py

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.middleware.proxy_fix import ProxyFix
import logging
import os
from flask_jwt_extended import JWTManager
from datetime import timedelta

logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO'),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = Flask(__name__)
app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'change-me-in-production')
app.config['JWT_SECRET_KEY'] = os.environ.get('JWT_SECRET_KEY', 'change-me-in-production-campusvote-jwt')
app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(minutes=int(os.environ.get('JWT_ACCESS_MINUTES', '30')))
app.config['JWT_TOKEN_LOCATION'] = ['cookies']
app.config['JWT_COOKIE_CSRF_PROTECT'] = False
app.config['JWT_ACCESS_COOKIE_PATH'] = '/'
app.config['JWT_COOKIE_SECURE'] = os.environ.get('JWT_COOKIE_SECURE', 'false').lower() == 'true'

app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///campusvote.db')
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

app.config['UNIVERSITY_EMAIL_DOMAIN'] = os.environ.get('UNIVERSITY_EMAIL_DOMAIN', 'reva.edu.in')
app.config['OTP_RESEND_SECONDS'] = int(os.environ.get('OTP_RESEND_SECONDS', '60'))
app.config['OTP_STRICT'] = os.environ.get('OTP_STRICT', 'false').lower() == 'true'
app.config['GEMINI_API_KEY'] = os.environ.get('GEMINI_API_KEY')
app.config['MANIFESTO_MODEL'] = os.environ.get('MANIFESTO_MODEL', 'gemini-2.5-flash')

jwt = JWTManager(app)


@jwt.expired_token_loader
def expired_token_callback(jwt_header, jwt_payload):
    return jsonify({"error": "Session has expired, please log in again."}), 401


@jwt.unauthorized_loader
def missing_token_callback(reason):
    return jsonify({"error": "Please log in first."}), 401


@jwt.invalid_token_loader
def invalid_token_callback(reason):
    return jsonify({"error": "Please log in first."}), 401


# Fix proxy headers for HTTPS
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

# Initialize extensions
db = SQLAlchemy(app)  # Database ORM
migrate = Migrate(app, db)  # DB migrations

app.config['RATELIMIT_ENABLED'] = os.environ.get('RATELIMIT_ENABLED', 'true').lower() == 'true'
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000/hour"],
    storage_uri=os.environ.get('RATELIMIT_STORAGE_URI', 'memory://'),
)
limiter.init_app(app)


# Ensure model modules are imported so SQLAlchemy metadata is populated
from campusvote.database import models  # noqa: F401,E402

from campusvote import routes  # noqa: F401,E402
from campusvote import commands  # noqa: F401,E402
