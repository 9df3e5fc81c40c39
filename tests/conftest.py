# Shared fixtures and in-memory collaborators for the authorization tests

import asyncio
import socket
from typing import Optional

import aiohttp
import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from loopback_oauth import AuthorizationResult
from utils.storage import SettingsStore


class MemoryKeyring(KeyringBackend):
    """Keyring backend that keeps passwords in a dict"""

    priority = 1

    def __init__(self):
        super().__init__()
        self.passwords = {}

    def get_password(self, service, username):
        return self.passwords.get((service, username))

    def set_password(self, service, username, password):
        self.passwords[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError("Password not found")


class MemorySecretStore:
    def __init__(self, secrets: Optional[dict] = None):
        self.secrets = dict(secrets or {})
        self.reads = []

    def read_secret(self, name):
        self.reads.append(name)
        return self.secrets.get(name)

    def write_secret(self, name, value):
        self.secrets[name] = value

    def delete_secret(self, name):
        return self.secrets.pop(name, None) is not None


class FakeFlow:
    """Stands in for DropboxPKCEFlow; records calls and returns a canned result"""

    def __init__(self, result: Optional[AuthorizationResult] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.authorize_args = None
        self.exchange_args = None

    def get_authorize_uri(self, response_type, api_key, redirect_uri, state,
                          token_access_type, scopes, include_granted_scopes):
        self.authorize_args = {
            "response_type": response_type,
            "api_key": api_key,
            "redirect_uri": redirect_uri,
            "state": state,
            "token_access_type": token_access_type,
            "scopes": scopes,
            "include_granted_scopes": include_granted_scopes,
        }
        return f"https://www.dropbox.com/oauth2/authorize?state={state}"

    def process_code_flow(self, redirect_uri_with_code, api_key, redirect_uri, state):
        self.exchange_args = {
            "redirect_uri_with_code": redirect_uri_with_code,
            "api_key": api_key,
            "redirect_uri": redirect_uri,
            "state": state,
        }
        if self.error:
            raise self.error
        return self.result


class FakeBrowser:
    """Browser launcher that replays the provider redirect and the trampoline hop"""

    def __init__(self, port: int, fragment: str = "", favicon: bool = True, forward: bool = True):
        self.port = port
        self.fragment = fragment
        self.favicon = favicon
        self.forward = forward
        self.opened = []
        self.task: Optional[asyncio.Task] = None

    def __call__(self, uri: str) -> bool:
        self.opened.append(uri)
        self.task = asyncio.get_running_loop().create_task(self._browse())
        return True

    async def _browse(self) -> dict:
        base = f"http://127.0.0.1:{self.port}"
        seen = {}
        async with aiohttp.ClientSession() as session:
            if self.favicon:
                async with session.get(f"{base}/favicon.ico") as resp:
                    seen["favicon_status"] = resp.status

            # Browsers never send the fragment to the server
            async with session.get(f"{base}/authorize") as resp:
                seen["trampoline_status"] = resp.status
                seen["trampoline_page"] = await resp.text()

            params = {}
            if self.forward:
                params["url_with_fragment"] = f"{base}/authorize{self.fragment}"
            async with session.get(f"{base}/token", params=params) as resp:
                seen["token_status"] = resp.status
        return seen


def can_bind(port: int) -> bool:
    """True if nothing is listening on the loopback port"""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            # Connections closed by the listener may linger in TIME_WAIT
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("127.0.0.1", port))
            sock.listen(1)
    except OSError:
        return False
    return True


@pytest.fixture
def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def settings_store(tmp_path):
    return SettingsStore(str(tmp_path / "dropbin" / "settings.json"))


@pytest.fixture
def secret_store():
    return MemorySecretStore()


@pytest.fixture
def memory_keyring():
    previous = keyring.get_keyring()
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)
