from __future__ import annotations

import asyncio

import pytest

from app.clients.smartthings_auth import OAuthTokenRequestError
from app.clients.token_file import TokenFileStore
from app.models.oauth import CredentialRecord
from app.schemas.auth import TokenGrant
from app.services.credentials import (
    CredentialError,
    CredentialService,
    ExchangeError,
    NotAuthenticated,
    RefreshError,
)

pytestmark = pytest.mark.anyio

NOW = 1_700_000_000_000
FIVE_MINUTES_MS = 5 * 60 * 1000


class FakeClock:
    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class DummyOAuthClient:
    def __init__(self) -> None:
        self.codes: list[str] = []
        self.refresh_calls: list[str] = []
        self.exchange_grant = TokenGrant(
            access_token="access-1", refresh_token="refresh-1", expires_in=86400
        )
        self.refresh_grant = TokenGrant(access_token="access-2", expires_in=3600)
        self.exchange_error: OAuthTokenRequestError | None = None
        self.refresh_error: OAuthTokenRequestError | None = None

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        self.codes.append(code)
        if self.exchange_error is not None:
            raise self.exchange_error
        return self.exchange_grant

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        self.refresh_calls.append(refresh_token)
        # Yield a few times so concurrent callers overlap with the request.
        for _ in range(3):
            await asyncio.sleep(0)
        if self.refresh_error is not None:
            raise self.refresh_error
        return self.refresh_grant


class RecordingStore:
    def __init__(self, path: str = "memory") -> None:
        self.path = path
        self.saved: list[CredentialRecord] = []

    def save(self, record: CredentialRecord) -> None:
        self.saved.append(record)

    def load(self) -> CredentialRecord | None:
        return self.saved[-1] if self.saved else None


class BrokenStore(RecordingStore):
    def save(self, record: CredentialRecord) -> None:
        raise OSError("disk full")


def _service(oauth=None, store=None, clock=None) -> CredentialService:
    return CredentialService(
        oauth_client=oauth or DummyOAuthClient(),
        store=store,
        clock=clock or FakeClock(),
    )


def _seed(service: CredentialService, *, expires_at: int, refresh_token: str = "refresh-0") -> None:
    service._record = CredentialRecord(
        access_token="access-0", refresh_token=refresh_token, expires_at=expires_at
    )


async def test_acquire_sets_expiry_from_issue_time_and_persists() -> None:
    oauth = DummyOAuthClient()
    store = RecordingStore()
    service = _service(oauth, store)

    record = await service.acquire("code-123")

    assert oauth.codes == ["code-123"]
    assert record.access_token == "access-1"
    assert record.refresh_token == "refresh-1"
    assert record.expires_at == NOW + 86400 * 1000
    assert service.snapshot() == record
    assert store.saved == [record]


async def test_acquire_rejected_code_leaves_prior_record_untouched() -> None:
    oauth = DummyOAuthClient()
    oauth.exchange_error = OAuthTokenRequestError(
        "rejected", status_code=400, body={"error": "invalid_grant"}
    )
    store = RecordingStore()
    service = _service(oauth, store)
    _seed(service, expires_at=NOW + 3_600_000)
    before = service.snapshot()

    with pytest.raises(ExchangeError) as excinfo:
        await service.acquire("expired-code")

    assert isinstance(excinfo.value, CredentialError)
    assert excinfo.value.status_code == 400
    assert excinfo.value.body == {"error": "invalid_grant"}
    assert service.snapshot() is before
    assert store.saved == []
    assert oauth.codes == ["expired-code"]


async def test_acquire_without_refresh_token_is_an_exchange_error() -> None:
    oauth = DummyOAuthClient()
    oauth.exchange_grant = TokenGrant(access_token="only-access", expires_in=60)
    service = _service(oauth)

    with pytest.raises(ExchangeError):
        await service.acquire("code")

    assert service.snapshot() is None


async def test_ensure_valid_without_record_raises_not_authenticated() -> None:
    service = _service()

    with pytest.raises(NotAuthenticated):
        await service.ensure_valid()


async def test_ensure_valid_outside_buffer_does_not_refresh() -> None:
    oauth = DummyOAuthClient()
    service = _service(oauth)
    _seed(service, expires_at=NOW + FIVE_MINUTES_MS + 1)

    token = await service.ensure_valid()

    assert token == "access-0"
    assert oauth.refresh_calls == []


async def test_ensure_valid_inside_buffer_refreshes_once() -> None:
    oauth = DummyOAuthClient()
    store = RecordingStore()
    service = _service(oauth, store)
    _seed(service, expires_at=NOW + FIVE_MINUTES_MS)

    token = await service.ensure_valid()

    assert token == "access-2"
    assert oauth.refresh_calls == ["refresh-0"]
    record = service.snapshot()
    assert record.expires_at == NOW + 3600 * 1000
    assert store.saved == [record]


async def test_concurrent_callers_share_a_single_refresh() -> None:
    oauth = DummyOAuthClient()
    service = _service(oauth)
    _seed(service, expires_at=NOW - 1)

    tokens = await asyncio.gather(*(service.ensure_valid() for _ in range(8)))

    assert tokens == ["access-2"] * 8
    assert len(oauth.refresh_calls) == 1


async def test_concurrent_refresh_failure_is_shared() -> None:
    oauth = DummyOAuthClient()
    oauth.refresh_error = OAuthTokenRequestError(
        "rejected", status_code=401, body={"error": "invalid_grant"}
    )
    service = _service(oauth)
    _seed(service, expires_at=NOW - 1)

    results = await asyncio.gather(
        *(service.ensure_valid() for _ in range(4)), return_exceptions=True
    )

    assert all(isinstance(result, RefreshError) for result in results)
    assert results[0].status_code == 401
    assert len(oauth.refresh_calls) == 1
    # Old record stays put; the caller decides to send the user back to login.
    assert service.snapshot().access_token == "access-0"


async def test_refresh_keeps_previous_refresh_token_when_omitted() -> None:
    oauth = DummyOAuthClient()
    service = _service(oauth)
    _seed(service, expires_at=NOW, refresh_token="keep-me")

    record = await service.refresh()

    assert record.refresh_token == "keep-me"
    assert record.access_token == "access-2"


async def test_refresh_replaces_rotated_refresh_token() -> None:
    oauth = DummyOAuthClient()
    oauth.refresh_grant = TokenGrant(
        access_token="access-3", refresh_token="rotated", expires_in=60
    )
    service = _service(oauth)
    _seed(service, expires_at=NOW, refresh_token="old")

    record = await service.refresh()

    assert record.refresh_token == "rotated"
    assert oauth.refresh_calls == ["old"]


async def test_refresh_without_record_fails() -> None:
    service = _service()

    with pytest.raises(RefreshError, match="no refresh token"):
        await service.refresh()


async def test_new_refresh_runs_after_previous_completes() -> None:
    oauth = DummyOAuthClient()
    service = _service(oauth)
    _seed(service, expires_at=NOW)

    await service.refresh()
    await service.refresh()

    assert len(oauth.refresh_calls) == 2


async def test_persist_failure_keeps_in_memory_record() -> None:
    service = _service(store=BrokenStore())

    record = await service.acquire("code")

    assert service.snapshot() == record
    assert await service.ensure_valid() == "access-1"


async def test_record_survives_restart_through_token_file(tmp_path) -> None:
    path = tmp_path / "tokens.json"
    first = _service(store=TokenFileStore(path))
    acquired = await first.acquire("code")

    restarted = _service(store=TokenFileStore(path))
    assert restarted.snapshot() is None
    loaded = restarted.load()

    assert loaded == acquired
    assert await restarted.ensure_valid() == "access-1"


def test_load_with_missing_file_stays_unauthenticated(tmp_path) -> None:
    service = _service(store=TokenFileStore(tmp_path / "absent.json"))

    assert service.load() is None
    assert service.is_authenticated is False


async def test_fractional_expires_in_is_accepted() -> None:
    oauth = DummyOAuthClient()
    oauth.exchange_grant = TokenGrant(
        access_token="access-1", refresh_token="refresh-1", expires_in=3599.5
    )
    oauth.refresh_grant = TokenGrant(access_token="access-2", expires_in=0.25)
    service = _service(oauth)

    record = await service.acquire("code")
    assert record.expires_at == NOW + 3_599_500

    refreshed = await service.refresh()
    assert refreshed.expires_at == NOW + 250


def test_grant_failures_share_a_public_base() -> None:
    assert issubclass(ExchangeError, CredentialError)
    assert issubclass(RefreshError, CredentialError)
    assert not issubclass(NotAuthenticated, CredentialError)


class GatedOAuthClient(DummyOAuthClient):
    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()
        self.exchange_grant = TokenGrant(
            access_token="login-access", refresh_token="login-refresh", expires_in=3600
        )

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        self.refresh_calls.append(refresh_token)
        await self.gate.wait()
        return TokenGrant(access_token=f"refreshed-{refresh_token}", expires_in=3600)


async def _until(condition) -> None:
    for _ in range(100):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


async def test_refresh_after_login_does_not_join_stale_refresh() -> None:
    oauth = GatedOAuthClient()
    service = _service(oauth)
    _seed(service, expires_at=NOW - 1, refresh_token="old-r")

    background = asyncio.ensure_future(service.ensure_valid())
    await _until(lambda: oauth.refresh_calls == ["old-r"])

    await service.acquire("code")
    forced = asyncio.ensure_future(service.refresh())
    await _until(lambda: len(oauth.refresh_calls) == 2)
    oauth.gate.set()

    record = await forced
    await background

    assert oauth.refresh_calls == ["old-r", "login-refresh"]
    assert record.access_token == "refreshed-login-refresh"
    assert record.refresh_token == "login-refresh"
    assert service.snapshot().access_token == "refreshed-login-refresh"


async def test_login_during_refresh_discards_old_refresh_result() -> None:
    oauth = GatedOAuthClient()
    service = _service(oauth)
    _seed(service, expires_at=NOW - 1, refresh_token="old-r")

    background = asyncio.ensure_future(service.ensure_valid())
    await _until(lambda: oauth.refresh_calls == ["old-r"])
    login = await service.acquire("code")
    oauth.gate.set()

    assert await background == "login-access"
    assert service.snapshot() is login
