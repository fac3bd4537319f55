"""
Credential verification delegated to the external auth provider
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel

from complaint_desk.exceptions import AuthenticationError
from complaint_desk.logging_config import logger


class UserIdentity(BaseModel):
    id: str
    email: Optional[str] = None


class CredentialVerifier(ABC):
    @abstractmethod
    async def verify(self, access_token: str) -> UserIdentity:
        """Resolve an access token to a user, raising AuthenticationError when invalid"""
        pass


class SupabaseCredentialVerifier(CredentialVerifier):
    """Validates access tokens with Supabase auth"""

    def __init__(self, client: Any):
        self.client = client

    async def verify(self, access_token: str) -> UserIdentity:
        if not access_token:
            raise AuthenticationError("Missing access token")

        try:
            response = await asyncio.to_thread(self.client.auth.get_user, access_token)
        except Exception as e:
            logger.warning(f"Token verification failed: {type(e).__name__}")
            raise AuthenticationError("Invalid access token") from e

        user = getattr(response, "user", None)
        if user is None:
            raise AuthenticationError("Invalid access token")
        return UserIdentity(id=str(user.id), email=getattr(user, "email", None))


def parse_bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an Authorization header value"""
    if not authorization:
        raise AuthenticationError("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must use the Bearer scheme")
    return token.strip()
