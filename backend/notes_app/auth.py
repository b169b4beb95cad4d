"""
Bearer-token authentication for Flask routes.

Tokens are issued by the backend-as-a-service auth API; we verify them by
asking that API for the user they belong to.
"""

import logging
from functools import wraps
from typing import Any

import requests
from flask import current_app, g, jsonify, request

from .config import Config

logger = logging.getLogger(__name__)


def fetch_user(token: str) -> dict[str, Any] | None:
    """
    Resolve an access token to its user record.

    Args:
        token: The bearer token string

    Returns:
        User payload if the token is valid, None otherwise
    """
    if not (Config.SUPABASE_URL and Config.SUPABASE_KEY):
        logger.error("Auth API is not configured (SUPABASE_URL/SUPABASE_KEY)")
        return None

    try:
        response = requests.get(
            f"{Config.SUPABASE_URL.rstrip('/')}/auth/v1/user",
            headers={"apikey": Config.SUPABASE_KEY, "Authorization": f"Bearer {token}"},
            timeout=Config.REST_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        logger.error("Error verifying token: %s", e)
        return None

    if response.status_code != 200:
        logger.info("Token rejected by auth API (HTTP %s)", response.status_code)
        return None

    payload = response.json()
    return payload if payload.get("id") else None


def get_auth_token() -> str | None:
    """
    Extract bearer token from Authorization header.

    Returns:
        Token string if present, None otherwise
    """
    auth_header = request.headers.get('Authorization', '')

    if not auth_header.startswith('Bearer '):
        return None

    return auth_header[7:]  # Remove 'Bearer ' prefix


def require_auth(f):
    """
    Decorator to require authentication for a Flask route.

    Sets g.user (auth API payload) and g.user_id before calling the route.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        # TESTING seam: allow deterministic auth without the auth API.
        # This is only enabled when Flask TESTING is true.
        if current_app.config.get("TESTING") is True:
            test_user_id = request.headers.get("X-Test-User-Id")
            if test_user_id:
                g.user = {"id": test_user_id}
                g.user_id = test_user_id
                return f(*args, **kwargs)

        token = get_auth_token()

        if not token:
            return jsonify({'error': 'Missing authentication token'}), 401

        user = fetch_user(token)

        if not user:
            return jsonify({'error': 'Invalid authentication token'}), 401

        g.user = user
        g.user_id = user["id"]

        return f(*args, **kwargs)

    return decorated_function
