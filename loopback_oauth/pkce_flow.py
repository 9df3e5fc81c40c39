"""
Dropbox SDK adapter for the PKCE code flow

The SDK owns the PKCE verifier, the CSRF token and the HTTP exchange. One
``DropboxPKCEFlow`` instance serves exactly one authorization attempt because
the verifier created for the authorize URL must be presented again at exchange.
"""
import logging
from typing import Dict, Iterable, Optional

from dropbox import DropboxOAuth2Flow

from .authorization import IncludeGrantedScopes, TokenAccessType
from .constants import CSRF_TOKEN_SESSION_KEY
from .token_exchange import AuthorizationResult, parse_redirect_params

logger = logging.getLogger(__name__)


class DropboxPKCEFlow:
    """Builds authorize URLs and exchanges codes through ``dropbox.DropboxOAuth2Flow``"""

    def __init__(self):
        self._session: Dict[str, str] = {}
        self._flow: Optional[DropboxOAuth2Flow] = None
        self._api_key: Optional[str] = None
        self._redirect_uri: Optional[str] = None

    def get_authorize_uri(
        self,
        response_type: str,
        api_key: str,
        redirect_uri: str,
        state: str,
        token_access_type: TokenAccessType,
        scopes: Iterable[str],
        include_granted_scopes: IncludeGrantedScopes,
    ) -> str:
        """
        Build the provider authorize URL with PKCE enabled.

        ``state`` travels as the SDK's url_state, appended to the SDK's own
        CSRF token, and comes back on the result for correlation.

        Args:
            response_type: Must be "code"
            api_key: Dropbox app key
            redirect_uri: Loopback redirect URI
            state: Correlation token
            token_access_type: Requested token lifetime
            scopes: Scopes to request
            include_granted_scopes: Whether to include previously granted scopes

        Returns:
            Authorization URL
        """
        if response_type != "code":
            raise ValueError(f"Unsupported response type: {response_type}")

        scope_list = sorted(scopes) or None
        self._flow = DropboxOAuth2Flow(
            api_key,
            redirect_uri,
            self._session,
            CSRF_TOKEN_SESSION_KEY,
            token_access_type=token_access_type.value,
            scope=scope_list,
            include_granted_scopes=include_granted_scopes.value,
            use_pkce=True,
        )
        self._api_key = api_key
        self._redirect_uri = redirect_uri

        return self._flow.start(url_state=state)

    def process_code_flow(
        self,
        redirect_uri_with_code: str,
        api_key: str,
        redirect_uri: str,
        state: str,
    ) -> AuthorizationResult:
        """
        Exchange the code carried by the redirect URL for tokens (blocking).

        ``state`` is accepted for symmetry with the authorize call; the caller
        compares it with the returned ``AuthorizationResult.state``.

        Args:
            redirect_uri_with_code: Full redirect URL forwarded by the trampoline
            api_key: Dropbox app key used for the authorize URL
            redirect_uri: Loopback redirect URI used for the authorize URL
            state: Correlation token sent with the authorize URL

        Returns:
            AuthorizationResult

        Raises:
            RuntimeError: If called before get_authorize_uri
            ValueError: If api_key or redirect_uri differ from the authorize call
            dropbox.oauth.NotApprovedException: If the user declined
            dropbox.oauth.ProviderException: If the provider reported an error
            dropbox.oauth.CsrfException: If the SDK's CSRF token does not match
        """
        if self._flow is None:
            raise RuntimeError("get_authorize_uri must be called before process_code_flow")
        if api_key != self._api_key or redirect_uri != self._redirect_uri:
            raise ValueError("Code exchange must use the api key and redirect URI of the authorize request")

        params = parse_redirect_params(redirect_uri_with_code)
        logger.debug(f"Redirect carried parameters: {sorted(params)}")

        result = self._flow.finish(params)

        return AuthorizationResult(
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            expires_at=result.expires_at,
            state=result.url_state,
            account_id=result.account_id,
            user_id=result.user_id,
            scope=result.scope,
        )
