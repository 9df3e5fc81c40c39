"""Errors raised inside the loopback authorization flow.

None of these escape ``LoopbackAuthorizer.obtain_access_token``; the flow
logs them and returns ``None``.
"""


class AuthorizationError(Exception):
    """Base class for loopback authorization failures"""


class MissingApiKeyError(AuthorizationError):
    """The user declined to supply an API key"""

    def __init__(self):
        super().__init__("The API Key is required to connect to Dropbox.")


class PortUnavailableError(AuthorizationError):
    """The loopback listener could not bind its host and port"""

    def __init__(self, host: str, port: int, reason: Exception):
        self.host = host
        self.port = port
        super().__init__(f"Cannot listen on {host}:{port}: {reason}")


class BrowserLaunchError(AuthorizationError):
    """The default browser could not be opened (non-fatal)"""


class RedirectError(AuthorizationError):
    """A redirect reached the listener without the data the flow needs"""


class StateMismatchError(AuthorizationError):
    """The state echoed by the exchange differs from the one sent"""

    def __init__(self, expected: str, received):
        self.expected = expected
        self.received = received
        super().__init__(
            "The state in the response doesn't match the state in the request "
            f"(expected {expected!r}, got {received!r})."
        )


class ExchangeError(AuthorizationError):
    """The authorization code could not be exchanged for tokens"""
