"""
Supabase JWT Authentication for Markwise.
Validates Bearer tokens on /api/ routes except public endpoints.
"""
import jwt
from flask import request, jsonify, g

from markwise.config import config
from markwise.errors import ConfigurationError


# Routes that don't require authentication
PUBLIC_EXACT = [
    '/api/health',
]

# Grading and OCR are also invoked service-to-service. A token, when sent,
# scopes retrieval to that teacher's documents.
OPTIONAL_AUTH_EXACT = [
    '/api/evaluate-answer',
    '/api/process-ocr',
]


def get_jwt_secret():
    """Get the Supabase JWT secret from configuration."""
    secret = config.jwt_secret
    if not secret:
        raise ConfigurationError('SUPABASE_JWT_SECRET not configured')
    return secret


def validate_token(token):
    """
    Validate a Supabase JWT and return the decoded payload.
    Returns None if invalid.
    """
    try:
        payload = jwt.decode(
            token,
            get_jwt_secret(),
            algorithms=['HS256'],
            audience='authenticated',
        )
        return payload
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def is_public_route(path):
    return path in PUBLIC_EXACT


def bearer_token():
    """The raw bearer token from the Authorization header, or None."""
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None
    return auth_header[7:]


def init_auth(app):
    """
    Register the before_request auth hook on the Flask app.
    Call this BEFORE registering blueprints.
    """
    @app.before_request
    def check_auth():
        g.user_id = None
        g.user_email = ''

        # CORS pre-flight never carries credentials
        if request.method == 'OPTIONS':
            return None

        # Skip non-API routes
        if not request.path.startswith('/api/'):
            return None

        if is_public_route(request.path):
            return None

        token = bearer_token()
        if token is None:
            if request.path in OPTIONAL_AUTH_EXACT:
                return None
            return jsonify({'error': 'Authentication required'}), 401

        try:
            payload = validate_token(token)
        except ConfigurationError as e:
            return jsonify({'error': str(e)}), 500
        if payload is None:
            return jsonify({'error': 'Invalid or expired token'}), 401

        # Attach user info to Flask's g object for use in route handlers
        g.user_id = payload.get('sub')
        g.user_email = payload.get('email', '')
