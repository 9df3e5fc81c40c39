"""
Authorization request construction for the loopback PKCE flow
"""
import enum
import uuid
from typing import FrozenSet, Iterable, NamedTuple, Optional

from .constants import REDIRECT_URI


class IncludeGrantedScopes(enum.Enum):
    """Which previously granted scopes the provider should fold into the token"""
    NONE = None
    USER = "user"
    TEAM = "team"


class TokenAccessType(enum.Enum):
    """Lifetime of the issued token; OFFLINE also issues a refresh token"""
    LEGACY = "legacy"
    ONLINE = "online"
    OFFLINE = "offline"


class AuthorizationRequest(NamedTuple):
    """Parameters of a single authorization attempt"""
    state: str
    api_key: str
    redirect_uri: str
    scopes: FrozenSet[str]
    include_granted_scopes: IncludeGrantedScopes
    token_access_type: TokenAccessType


def create_state() -> str:
    """
    Generate a random correlation token for the state parameter.

    Returns:
        str: 32 hex characters
    """
    return uuid.uuid4().hex


def create_authorization_request(
    api_key: str,
    scopes: Optional[Iterable[str]] = None,
    include_granted_scopes: IncludeGrantedScopes = IncludeGrantedScopes.NONE,
    redirect_uri: str = REDIRECT_URI,
    state: Optional[str] = None,
) -> AuthorizationRequest:
    """
    Create the request for one authorization attempt.

    Offline access is always requested so the provider issues a refresh token.

    Args:
        api_key: Dropbox app key
        scopes: Scopes to request; empty requests the app's default scopes
        include_granted_scopes: Whether to include previously granted scopes
        redirect_uri: Loopback redirect URI registered with the app
        state: Correlation token; a fresh one is generated when omitted

    Returns:
        AuthorizationRequest
    """
    return AuthorizationRequest(
        state=state or create_state(),
        api_key=api_key,
        redirect_uri=redirect_uri,
        scopes=frozenset(scopes or ()),
        include_granted_scopes=include_granted_scopes,
        token_access_type=TokenAccessType.OFFLINE,
    )
