"""Tests for the session-expiry signal."""
from posadmin.api.expiry import DEFAULT_MESSAGE, ExpiryState, SessionExpiry, login_redirect_url


class TestSessionExpiry:
    def test_starts_active(self):
        expiry = SessionExpiry()
        assert not expiry.expired
        assert expiry.state == ExpiryState()

    def test_expire_once(self):
        expiry = SessionExpiry()
        seen = []
        expiry.subscribe(seen.append)
        assert expiry.expire("Token gone") is True
        assert expiry.expire("again") is False
        assert seen == [ExpiryState(expired=True, message="Token gone")]
        assert expiry.state.message == "Token gone"

    def test_default_message(self):
        expiry = SessionExpiry()
        expiry.expire()
        assert expiry.state.message == DEFAULT_MESSAGE

    def test_reset_notifies_only_when_expired(self):
        expiry = SessionExpiry()
        seen = []
        expiry.subscribe(seen.append)
        expiry.reset()
        assert seen == []
        expiry.expire()
        expiry.reset()
        assert seen[-1] == ExpiryState()
        assert expiry.expire() is True

    def test_unsubscribe(self):
        expiry = SessionExpiry()
        seen = []
        unsubscribe = expiry.subscribe(seen.append)
        unsubscribe()
        expiry.expire()
        assert seen == []


class TestLoginRedirectUrl:
    def test_quotes_current_path(self):
        url = login_redirect_url("/orders?brandId=b1")
        assert url == "/login?reason=sessionExpired&redirect=%2Forders%3FbrandId%3Db1"

    def test_default_path(self):
        assert login_redirect_url() == "/login?reason=sessionExpired&redirect=%2F"
