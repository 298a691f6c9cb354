"""
tests/helpers.py -- Builders and fakes shared by the tokengate test modules.

Plain module, not a conftest: test modules import these names directly,
while conftest.py turns the ones that need setup/teardown into fixtures.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from auth.models import UserRecord
from auth.store import UserStore
from core.config import Settings, SigningConfig

TEST_SECRET = "tokengate-test-signing-secret-0123456789"
OTHER_SECRET = "a-completely-different-signing-secret-9876"


def make_settings(**overrides) -> Settings:
    """Return Settings built only from the given values.

    _env_file=None keeps a developer's .env out of the tests; explicit
    keyword values take precedence over any SECRET_KEY etc. in os.environ.
    """
    values = {
        "secret_key": TEST_SECRET,
        "debug": False,
        "database_url": "sqlite:///file:test_users_default?mode=memory&cache=shared&uri=true",
        "jwt_algorithm": "HS256",
        "token_expire_seconds": 3600,
        "secret_scheme": "plain",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_store(db_suffix: str) -> UserStore:
    """Create an isolated named shared-memory SQLite store."""
    return UserStore(f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true")


def make_signing_config(seconds: float = 3600, secret: str = TEST_SECRET, algorithm: str = "HS256") -> SigningConfig:
    return SigningConfig(secret=secret, algorithm=algorithm, expires_in=timedelta(seconds=seconds))


class DictLookup:
    """UserLookup backed by a dict; counts calls."""

    def __init__(self, *records: UserRecord) -> None:
        self.records = {r.identifier: r for r in records}
        self.calls: list[str] = []

    def find_user_by_identifier(self, identifier: str) -> UserRecord | None:
        self.calls.append(identifier)
        return self.records.get(identifier)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


ALICE = UserRecord(
    identifier="alice@example.com",
    secret="hunter2",
    subject_id="42",
    display_name="Alice",
    attributes={"team": "platform"},
)


