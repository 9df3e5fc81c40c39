"""
Authorization code exchange for the loopback PKCE flow
"""
import asyncio
import logging
from datetime import datetime
from typing import Dict, NamedTuple, Optional
from urllib.parse import parse_qsl, urlparse

from .authorization import AuthorizationRequest
from .errors import ExchangeError

logger = logging.getLogger(__name__)


class AuthorizationResult(NamedTuple):
    """Tokens returned by the code exchange"""
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    state: Optional[str] = None
    account_id: Optional[str] = None
    user_id: Optional[str] = None
    scope: Optional[str] = None


def parse_redirect_params(redirect_uri_with_code: str) -> Dict[str, str]:
    """
    Collect OAuth response parameters from a redirect URL.

    The provider may place ``code``/``state``/``error`` either in the query
    string or in the fragment, so both are read. Fragment values win.

    Args:
        redirect_uri_with_code: Full redirect URL forwarded by the trampoline page

    Returns:
        Dict of parameter name to value
    """
    parsed = urlparse(redirect_uri_with_code)
    params: Dict[str, str] = dict(parse_qsl(parsed.query, keep_blank_values=True))
    params.update(parse_qsl(parsed.fragment, keep_blank_values=True))
    return params


async def exchange_code(
    flow,
    redirect_uri_with_code: str,
    request: AuthorizationRequest,
) -> AuthorizationResult:
    """
    Exchange the authorization code carried by a redirect URL for tokens.

    The SDK performs a blocking HTTP call, so it runs in a worker thread.

    Args:
        flow: OAuth flow that built the authorize URL for ``request``
        redirect_uri_with_code: Full redirect URL with the code
        request: The originating authorization request

    Returns:
        AuthorizationResult

    Raises:
        ExchangeError: If the SDK rejects the response or the HTTP call fails
    """
    logger.debug("Exchanging authorization code for tokens")
    try:
        return await asyncio.to_thread(
            flow.process_code_flow,
            redirect_uri_with_code,
            request.api_key,
            request.redirect_uri,
            request.state,
        )
    except ExchangeError:
        raise
    except Exception as e:
        raise ExchangeError(f"Token exchange failed: {e}") from e
