# Tests for loopback_oauth/pkce_flow.py

from datetime import datetime
from types import SimpleNamespace
from urllib.parse import parse_qs, urlencode, urlparse

import pytest
from dropbox.oauth import CsrfException, NotApprovedException

from loopback_oauth import DropboxPKCEFlow, IncludeGrantedScopes, TokenAccessType

REDIRECT_URI = "http://127.0.0.1:52475/authorize"


class RecordingOAuth2Flow:
    """Stands in for dropbox.DropboxOAuth2Flow"""

    instances = []

    def __init__(self, consumer_key, redirect_uri, session, csrf_token_session_key, **kwargs):
        self.consumer_key = consumer_key
        self.redirect_uri = redirect_uri
        self.session = session
        self.csrf_token_session_key = csrf_token_session_key
        self.kwargs = kwargs
        self.finished_with = None
        RecordingOAuth2Flow.instances.append(self)

    def start(self, url_state=None):
        self.url_state = url_state
        return f"https://www.dropbox.com/oauth2/authorize?state=csrf%7C{url_state}"

    def finish(self, query_params):
        self.finished_with = query_params
        return SimpleNamespace(
            access_token="tok1",
            refresh_token="ref1",
            expires_at=datetime(2030, 1, 1),
            url_state="deadbeef",
            account_id="dbid:abc",
            user_id="42",
            scope="files.content.read",
        )


@pytest.fixture
def recording_flow(monkeypatch):
    RecordingOAuth2Flow.instances = []
    monkeypatch.setattr("loopback_oauth.pkce_flow.DropboxOAuth2Flow", RecordingOAuth2Flow)
    return RecordingOAuth2Flow


def authorize(flow, scopes=("files.content.read",), include=IncludeGrantedScopes.NONE):
    return flow.get_authorize_uri(
        "code", "abc123", REDIRECT_URI, "deadbeef", TokenAccessType.OFFLINE, frozenset(scopes), include
    )


class TestDropboxPKCEFlowAdapter:
    def test_authorize_uri_arguments(self, recording_flow):
        flow = DropboxPKCEFlow()
        uri = authorize(flow, scopes=("files.metadata.read", "files.content.read"), include=IncludeGrantedScopes.USER)

        sdk = recording_flow.instances[0]
        assert uri.endswith("deadbeef")
        assert sdk.consumer_key == "abc123"
        assert sdk.redirect_uri == REDIRECT_URI
        assert sdk.url_state == "deadbeef"
        assert sdk.kwargs == {
            "token_access_type": "offline",
            "scope": ["files.content.read", "files.metadata.read"],
            "include_granted_scopes": "user",
            "use_pkce": True,
        }

    def test_empty_scopes_request_app_defaults(self, recording_flow):
        authorize(DropboxPKCEFlow(), scopes=())
        assert recording_flow.instances[0].kwargs["scope"] is None

    def test_rejects_other_response_types(self, recording_flow):
        with pytest.raises(ValueError):
            DropboxPKCEFlow().get_authorize_uri(
                "token", "abc123", REDIRECT_URI, "deadbeef", TokenAccessType.OFFLINE,
                frozenset(), IncludeGrantedScopes.NONE,
            )

    def test_process_code_flow_maps_result(self, recording_flow):
        flow = DropboxPKCEFlow()
        authorize(flow)

        result = flow.process_code_flow(
            f"{REDIRECT_URI}#code=XYZ&state=csrf%7Cdeadbeef", "abc123", REDIRECT_URI, "deadbeef"
        )

        assert recording_flow.instances[0].finished_with == {"code": "XYZ", "state": "csrf|deadbeef"}
        assert result.access_token == "tok1"
        assert result.refresh_token == "ref1"
        assert result.state == "deadbeef"
        assert result.expires_at == datetime(2030, 1, 1)
        assert result.account_id == "dbid:abc"

    def test_exchange_requires_authorize_first(self):
        with pytest.raises(RuntimeError):
            DropboxPKCEFlow().process_code_flow(f"{REDIRECT_URI}#code=XYZ", "abc123", REDIRECT_URI, "deadbeef")

    def test_exchange_rejects_different_api_key(self, recording_flow):
        flow = DropboxPKCEFlow()
        authorize(flow)
        with pytest.raises(ValueError):
            flow.process_code_flow(f"{REDIRECT_URI}#code=XYZ", "other-key", REDIRECT_URI, "deadbeef")


class TestDropboxPKCEFlowWithSDK:
    """Exercises the real SDK up to the point where it would contact Dropbox"""

    def test_authorize_uri_uses_pkce_and_offline_access(self):
        uri = authorize(DropboxPKCEFlow())
        query = parse_qs(urlparse(uri).query)

        assert query["response_type"] == ["code"]
        assert query["client_id"] == ["abc123"]
        assert query["redirect_uri"] == [REDIRECT_URI]
        assert query["token_access_type"] == ["offline"]
        assert query["code_challenge_method"] == ["S256"]
        assert "code_challenge" in query
        assert query["state"][0].endswith("|deadbeef")

    def test_denied_authorization(self):
        flow = DropboxPKCEFlow()
        uri = authorize(flow)
        state = parse_qs(urlparse(uri).query)["state"][0]

        with pytest.raises(NotApprovedException):
            flow.process_code_flow(
                f"{REDIRECT_URI}?" + urlencode({"error": "access_denied", "state": state}),
                "abc123", REDIRECT_URI, "deadbeef",
            )

    def test_forged_state_rejected_by_sdk(self):
        flow = DropboxPKCEFlow()
        authorize(flow)

        with pytest.raises(CsrfException):
            flow.process_code_flow(
                f"{REDIRECT_URI}#code=XYZ&state=forged-csrf-token%7Cdeadbeef",
                "abc123", REDIRECT_URI, "deadbeef",
            )
