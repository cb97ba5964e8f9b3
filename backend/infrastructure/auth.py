"""
Actor tokens: JWT-based identity for requests that need an actor context.

The user directory (registration, login, passwords) is an external
collaborator. It issues tokens signed with the shared JWT_SECRET; this module
only validates them and turns them into an Actor.

NOTES:
- Tokens are sent via the X-API-Key header
- Only endpoints that need an actor (deleting a memory) require one
- Always use HTTPS in production to protect tokens in transit
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from core import get_settings
from domain.entities.memory import Actor
from domain.exceptions import AuthenticationError, ConfigurationError
from domain.value_objects.enums import UserRole
from fastapi import Request

logger = logging.getLogger("Auth")

TOKEN_HEADER = "X-API-Key"
TOKEN_TYPE = "access_token"


def get_jwt_secret() -> str:
    """
    Get the JWT secret key from environment variable.

    Raises:
        ConfigurationError: If JWT_SECRET is not set

    Returns:
        str: The JWT secret key
    """
    # Prefer direct environment variable (supports runtime overrides in tests)
    jwt_secret = os.getenv("JWT_SECRET") or get_settings().jwt_secret
    if not jwt_secret:
        logger.error("❌ ERROR: JWT_SECRET is not set in environment variables!")
        logger.error("💡 To fix: Generate a secret with 'python -c \"import secrets; print(secrets.token_hex(32))\"'")
        logger.error("💡 Then add JWT_SECRET=<your_secret> to your .env file")
        raise ConfigurationError("JWT_SECRET is not set")
    return jwt_secret


def generate_jwt_token(
    user_id: int,
    username: str,
    role: UserRole = UserRole.MEMBER,
    expiration_hours: Optional[int] = None,
) -> str:
    """
    Generate a JWT token for an actor.

    Args:
        user_id: Id of the user in the user directory
        username: Display name
        role: UserRole.ADMIN or UserRole.MEMBER
        expiration_hours: Hours until token expires (default from settings)

    Returns:
        str: Encoded JWT token
    """
    if expiration_hours is None:
        expiration_hours = get_settings().token_expiration_hours

    now = datetime.now(timezone.utc)
    payload = {
        "exp": now + timedelta(hours=expiration_hours),
        "iat": now,
        "type": TOKEN_TYPE,
        "role": UserRole(role).value,
        "user_id": int(user_id),
        "username": username,
    }
    return jwt.encode(payload, get_jwt_secret(), algorithm="HS256")


def validate_jwt_token(token: str) -> dict | None:
    """
    Validate a JWT token and return its payload.

    Args:
        token: The JWT token to validate

    Returns:
        dict | None: Token payload if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, get_jwt_secret(), algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        logger.warning("⚠️  JWT token has expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"⚠️  Invalid JWT token: {e}")
        return None

    if payload.get("type") != TOKEN_TYPE:
        logger.warning("⚠️  JWT token has the wrong type")
        return None
    return payload


def actor_from_token(token: str) -> Actor | None:
    """
    Build an Actor from a token.

    Returns:
        Actor | None: The actor if the token is valid and complete, None otherwise
    """
    payload = validate_jwt_token(token)
    if not payload:
        return None

    try:
        user_id = int(payload["user_id"])
        username = str(payload["username"])
    except (KeyError, TypeError, ValueError):
        logger.warning("⚠️  JWT token is missing the user identity")
        return None

    role = UserRole.ADMIN if payload.get("role") == UserRole.ADMIN.value else UserRole.MEMBER
    return Actor(id=user_id, name=username, role=role, token=token)


def require_actor(request: Request) -> Actor:
    """
    Dependency function to require an actor for an endpoint.

    Args:
        request: The FastAPI request object

    Raises:
        AuthenticationError: 401 if the token is missing or invalid

    Usage:
        @router.delete("/{memory_id}")
        async def delete_memory(memory_id: str, actor: Actor = Depends(require_actor)):
            ...
    """
    token = request.headers.get(TOKEN_HEADER)
    if not token:
        raise AuthenticationError("Please sign in to delete posts")

    actor = actor_from_token(token)
    if actor is None:
        raise AuthenticationError("Invalid or missing authentication token")
    return actor
