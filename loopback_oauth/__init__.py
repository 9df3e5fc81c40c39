"""
Dropbox loopback OAuth (PKCE) authorization module
"""
from .constants import (
    LOOPBACK_HOST,
    LOOPBACK_PORT,
    REDIRECT_PATH,
    TOKEN_PATH,
    REDIRECT_URI,
    JS_REDIRECT_URI,
)
from .errors import (
    AuthorizationError,
    MissingApiKeyError,
    PortUnavailableError,
    BrowserLaunchError,
    RedirectError,
    StateMismatchError,
    ExchangeError,
)
from .authorization import (
    IncludeGrantedScopes,
    TokenAccessType,
    AuthorizationRequest,
    create_state,
    create_authorization_request,
)
from .token_exchange import (
    AuthorizationResult,
    parse_redirect_params,
    exchange_code,
)
from .callback_server import (
    IncomingRequest,
    LoopbackListener,
    load_trampoline_page,
)
from .pkce_flow import DropboxPKCEFlow
from .browser import launch_default_browser
from .prompts import ConsoleApiKeyPrompt
from .authorizer import FlowState, LoopbackAuthorizer, SETTINGS_MAPPING

__all__ = [
    # Constants
    "LOOPBACK_HOST",
    "LOOPBACK_PORT",
    "REDIRECT_PATH",
    "TOKEN_PATH",
    "REDIRECT_URI",
    "JS_REDIRECT_URI",
    # Errors
    "AuthorizationError",
    "MissingApiKeyError",
    "PortUnavailableError",
    "BrowserLaunchError",
    "RedirectError",
    "StateMismatchError",
    "ExchangeError",
    # Authorization
    "IncludeGrantedScopes",
    "TokenAccessType",
    "AuthorizationRequest",
    "create_state",
    "create_authorization_request",
    # Token Exchange
    "AuthorizationResult",
    "parse_redirect_params",
    "exchange_code",
    # Listener
    "IncomingRequest",
    "LoopbackListener",
    "load_trampoline_page",
    # Collaborators
    "DropboxPKCEFlow",
    "launch_default_browser",
    "ConsoleApiKeyPrompt",
    # Authorizer
    "FlowState",
    "LoopbackAuthorizer",
    "SETTINGS_MAPPING",
]
