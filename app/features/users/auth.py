"""
Authentication utilities for Appwrite JWT verification.
"""
import asyncio

import jwt
from typing import Optional
from appwrite.client import Client
from appwrite.services.users import Users
from appwrite.exception import AppwriteException

from app.core import config
from app.core.errors import UnauthorizedError
from app.utils import get_logger


log = get_logger(__name__)


class AppwriteClient:
    """Singleton Appwrite client for server-side operations."""

    _instance: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        """Get or create Appwrite client instance."""
        if cls._instance is None:
            cls._instance = Client()
            cls._instance.set_endpoint(config.APPWRITE_ENDPOINT)
            cls._instance.set_project(config.APPWRITE_PROJECT_ID)
            cls._instance.set_key(config.APPWRITE_API_KEY)
        return cls._instance


def verify_jwt_token(token: str) -> dict:
    """
    Decode an Appwrite JWT and return its payload.

    The signature is not checked here; Appwrite signs the token and the
    subject is looked up before a profile is provisioned. Expiry is enforced.

    Raises:
        UnauthorizedError: If the token is expired or malformed
    """
    try:
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": True}
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError(f"Invalid token: {str(e)}")


async def get_appwrite_user(user_id: str) -> dict:
    """
    Get user information from Appwrite.

    The SDK is synchronous, so the call runs in a worker thread.

    Raises:
        UnauthorizedError: If the user is unknown to Appwrite or the API fails
    """
    try:
        client = AppwriteClient.get_client()
        users = Users(client)
        return await asyncio.to_thread(users.get, user_id)
    except AppwriteException as e:
        log.warning("Appwrite lookup failed for %s: %s", user_id, e)
        raise UnauthorizedError(f"Failed to verify user: {str(e)}")
