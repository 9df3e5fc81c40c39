"""
Loopback authorizer: obtains Dropbox tokens through the system browser

The provider redirects the browser to the local listener; the page served
there forwards the full redirect URL to a second local endpoint, from which
the authorization code is exchanged for tokens. Tokens go to the secret store
under drive-scoped names and the remaining result fields go to settings.
"""
import enum
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional

from rich.console import Console

from settings import REDIRECT_TIMEOUT
from utils.secrets import KeyringSecretStore, get_access_token_name, get_refresh_token_name
from utils.storage import SettingsStore
from .authorization import AuthorizationRequest, IncludeGrantedScopes, create_authorization_request
from .browser import launch_default_browser
from .callback_server import COMPLETE_PAGE, LoopbackListener, load_trampoline_page
from .constants import LOOPBACK_HOST, LOOPBACK_PORT, REDIRECT_PATH, TOKEN_PATH, URL_WITH_FRAGMENT_PARAM
from .errors import BrowserLaunchError, MissingApiKeyError, RedirectError, StateMismatchError
from .pkce_flow import DropboxPKCEFlow
from .prompts import ConsoleApiKeyPrompt
from .token_exchange import AuthorizationResult, exchange_code

logger = logging.getLogger(__name__)


class FlowState(enum.Enum):
    IDLE = "idle"
    CACHED_HIT = "cached_hit"
    AWAITING_API_KEY = "awaiting_api_key"
    LISTENER_STARTED = "listener_started"
    AWAITING_PROVIDER_REDIRECT = "awaiting_provider_redirect"
    AWAITING_SCRIPT_REDIRECT = "awaiting_script_redirect"
    EXCHANGING_CODE = "exchanging_code"
    PERSISTED = "persisted"
    FAILED = "failed"


# Setting name -> value taken from the exchange result
SETTINGS_MAPPING: Dict[str, Callable[[AuthorizationResult], Any]] = {
    "access_token_expiration": lambda result: (result.expires_at or datetime.now()).isoformat(),
    "account_id": lambda result: result.account_id,
    "user_id": lambda result: result.user_id,
    "scope": lambda result: result.scope,
}


class LoopbackAuthorizer:
    """Runs the loopback PKCE authorization flow for one drive at a time

    Only one flow can run per host/port: a second concurrent attempt fails
    to bind the listener.
    """

    def __init__(
        self,
        secret_store=None,
        settings_store=None,
        api_key_prompt: Optional[Callable[[], str]] = None,
        browser_launcher: Callable[[str], bool] = launch_default_browser,
        flow_factory: Callable[[], Any] = DropboxPKCEFlow,
        host: str = LOOPBACK_HOST,
        port: int = LOOPBACK_PORT,
        redirect_timeout: Optional[float] = None,
        console: Optional[Console] = None,
    ):
        self.console = console or Console()
        self.secrets = secret_store if secret_store is not None else KeyringSecretStore()
        self.settings = settings_store if settings_store is not None else SettingsStore()
        self.api_key_prompt = api_key_prompt or ConsoleApiKeyPrompt(self.console)
        self.browser_launcher = browser_launcher
        self.flow_factory = flow_factory
        self.host = host
        self.port = port
        self.redirect_uri = f"http://{host}:{port}{REDIRECT_PATH}"
        # 0 or None waits forever for the browser round-trip
        timeout = redirect_timeout if redirect_timeout is not None else REDIRECT_TIMEOUT
        self.redirect_timeout = timeout or None
        self.state = FlowState.IDLE

    def _transition(self, new_state: FlowState):
        logger.debug(f"Authorization flow: {self.state.value} -> {new_state.value}")
        self.state = new_state

    async def obtain_access_token(
        self,
        scopes: Optional[Iterable[str]] = None,
        include_granted_scopes: IncludeGrantedScopes = IncludeGrantedScopes.NONE,
        drive_name: str = "Dropbox",
    ) -> Optional[str]:
        """
        Return an access token for ``drive_name``, authorizing in the browser if needed.

        A token already in the secret store is returned without any network
        activity. Failures are logged and reported as None; nothing is raised.

        Args:
            scopes: Scopes to request, e.g. ["files.content.read"]
            include_granted_scopes: Whether to include previously granted scopes
            drive_name: Drive whose credentials are read and written

        Returns:
            Access token, or None if authorization failed or was declined
        """
        self.state = FlowState.IDLE
        try:
            self.settings.upgrade()

            cached_token = self.secrets.read_secret(get_access_token_name(drive_name))
            if cached_token:
                logger.debug(f"Using cached access token for drive {drive_name}")
                self._transition(FlowState.CACHED_HIT)
                return cached_token

            self._transition(FlowState.AWAITING_API_KEY)
            api_key = self._get_api_key()

            request = create_authorization_request(
                api_key,
                scopes=scopes,
                include_granted_scopes=include_granted_scopes,
                redirect_uri=self.redirect_uri,
            )
            return await self._authorize(request, drive_name)

        except MissingApiKeyError as e:
            logger.warning(str(e))
            self.console.print(f"[yellow]{e}[/yellow]")
            self._transition(FlowState.FAILED)
            return None
        except Exception as e:
            logger.error(f"Authorization for drive {drive_name} failed: {e}")
            logger.debug("Authorization failure details", exc_info=True)
            self.console.print(f"[red][ERROR][/red] {e}")
            self._transition(FlowState.FAILED)
            return None

    def _get_api_key(self) -> str:
        """
        Read the API key from settings, prompting until one is supplied.

        Raises:
            MissingApiKeyError: If the user enters 'quit' or cancels the prompt
        """
        api_key = (self.settings.get("api_key") or "").strip()

        while not api_key:
            try:
                answer = self.api_key_prompt()
            except (KeyboardInterrupt, EOFError):
                answer = "quit"

            api_key = (answer or "").strip()
            if api_key.lower() == "quit":
                raise MissingApiKeyError()
            if api_key:
                self.settings.set("api_key", api_key)

        return api_key

    async def _authorize(self, request: AuthorizationRequest, drive_name: str) -> str:
        flow = self.flow_factory()
        authorize_uri = flow.get_authorize_uri(
            "code",
            request.api_key,
            request.redirect_uri,
            request.state,
            request.token_access_type,
            request.scopes,
            request.include_granted_scopes,
        )
        trampoline_page = load_trampoline_page()

        listener = LoopbackListener(self.host, self.port)
        await listener.start()
        self._transition(FlowState.LISTENER_STARTED)
        try:
            self._open_browser(authorize_uri)
            redirect_uri_with_code = await self._await_redirects(listener, trampoline_page)
        finally:
            # The port must be free again before the network exchange
            await listener.stop()

        self._transition(FlowState.EXCHANGING_CODE)
        result = await exchange_code(flow, redirect_uri_with_code, request)

        if result.state != request.state:
            # Dropbox does not echo state reliably, so a mismatch is only reported
            logger.warning(str(StateMismatchError(request.state, result.state)))
            self.console.print("[yellow]The state in the response doesn't match the state in the request.[/yellow]")

        self._persist(drive_name, result)
        self._transition(FlowState.PERSISTED)
        self.console.print("[green][OK][/green] OAuth token acquire complete")
        return result.access_token

    def _open_browser(self, authorize_uri: str):
        self.console.print("Waiting for credentials and authorization.")
        try:
            self.browser_launcher(authorize_uri)
            logger.debug("Browser opened for authorization")
        except BrowserLaunchError as e:
            logger.warning(str(e))
            self.console.print("[yellow]Could not open browser automatically[/yellow]")
            self.console.print(f"Please open this URL manually:\n{authorize_uri}")

    async def _await_redirects(self, listener: LoopbackListener, trampoline_page: str) -> str:
        """
        Wait for the provider redirect, then for the trampoline's forwarded URL.

        Returns:
            The full redirect URL, fragment included
        """
        self._transition(FlowState.AWAITING_PROVIDER_REDIRECT)
        provider_redirect = await listener.wait_for_path(REDIRECT_PATH, self.redirect_timeout)
        provider_redirect.respond_html(trampoline_page)

        self._transition(FlowState.AWAITING_SCRIPT_REDIRECT)
        script_redirect = await listener.wait_for_path(TOKEN_PATH, self.redirect_timeout)
        redirect_uri_with_code = script_redirect.query.get(URL_WITH_FRAGMENT_PARAM)
        if not redirect_uri_with_code:
            script_redirect.respond_html("Missing url_with_fragment parameter", status=400)
            raise RedirectError(f"Request to {TOKEN_PATH} did not carry {URL_WITH_FRAGMENT_PARAM}")

        script_redirect.respond_html(COMPLETE_PAGE)
        return redirect_uri_with_code

    def _persist(self, drive_name: str, result: AuthorizationResult):
        """Write tokens to the secret store and result fields to settings"""
        self.secrets.write_secret(get_access_token_name(drive_name), result.access_token)
        if result.refresh_token:
            self.secrets.write_secret(get_refresh_token_name(drive_name), result.refresh_token)
        else:
            logger.info(f"No refresh token issued for drive {drive_name}")

        for setting_name, extract in SETTINGS_MAPPING.items():
            self.settings.set(setting_name, extract(result))

        self.settings.save()
        self.settings.reload()
