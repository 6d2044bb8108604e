"""Shared pytest fixtures for the marketplace test suite."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator
from decimal import Decimal
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from marketplace.app import create_app, initialize_services
from marketplace.config import Settings
from marketplace.domain.models import Application, Campaign, Profile
from marketplace.domain.types import UserRole
from marketplace.paystack import PaystackClient, PaystackTransaction
from marketplace.resilience import configure_error_notifier
from marketplace.services.auth import issue_token
from marketplace.slack import SlackNotifier
from marketplace.store import Database, open_database

AUTH_SECRET = "test-auth-secret"
PAYSTACK_SECRET = "sk_test_secret"


@pytest.fixture
def settings() -> Settings:
    """Settings with credentials filled in and no .env lookup."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        auth_secret=AUTH_SECRET,
        paystack_secret_key=PAYSTACK_SECRET,
        database_path=Path(":memory:"),
    )


@pytest.fixture
def db() -> Iterator[Database]:
    """A fresh in-memory marketplace database."""
    database = open_database(":memory:")
    yield database
    database.close()


@pytest.fixture
def paystack() -> MagicMock:
    """A Paystack client double; tests set ``verify_transaction`` results."""
    return MagicMock(spec=PaystackClient)


@pytest.fixture
def slack() -> MagicMock:
    return MagicMock(spec=SlackNotifier)


@pytest.fixture
def services(
    settings: Settings, db: Database, paystack: MagicMock, slack: MagicMock
) -> Iterator[dict[str, Any]]:
    """The full services dict wired against the in-memory database."""
    yield initialize_services(settings, db=db, paystack=paystack, slack_notifier=slack)
    configure_error_notifier(None)


@pytest.fixture
def client(services: dict[str, Any]) -> TestClient:
    return TestClient(create_app(services))


@pytest.fixture
def make_user(services: dict[str, Any]) -> Callable[..., tuple[Profile, str]]:
    """Factory registering a user and returning ``(profile, token)``."""

    def _make(role: UserRole = UserRole.INFLUENCER, **fields: Any) -> tuple[Profile, str]:
        data = {
            "email": f"{uuid.uuid4().hex[:10]}@example.com",
            "role": role,
            "display_name": f"Test {role}",
            **fields,
        }
        return services["users"].register(data, allow_admin=True)

    return _make


@pytest.fixture
def business(make_user: Callable[..., tuple[Profile, str]]) -> Profile:
    profile, _ = make_user(UserRole.BUSINESS, display_name="Acme", company_name="Acme Ltd")
    return profile


@pytest.fixture
def influencer(make_user: Callable[..., tuple[Profile, str]]) -> Profile:
    profile, _ = make_user(UserRole.INFLUENCER, display_name="Ada Creator")
    return profile


@pytest.fixture
def admin(make_user: Callable[..., tuple[Profile, str]]) -> Profile:
    profile, _ = make_user(UserRole.ADMIN, display_name="Ops")
    return profile


@pytest.fixture
def campaign(services: dict[str, Any], business: Profile) -> Campaign:
    return services["campaigns"].create(
        business,
        {
            "title": "Summer launch",
            "description": "Promote the summer collection",
            "budget_min": Decimal("5000"),
            "budget_max": Decimal("20000"),
            "platforms": ["instagram"],
        },
    )


@pytest.fixture
def application(
    services: dict[str, Any], campaign: Campaign, influencer: Profile
) -> Application:
    return services["applications"].apply(
        influencer,
        campaign.id,
        {"proposal": "Two reels and a story", "proposed_rate": Decimal("8000")},
    )


@pytest.fixture
def verified_payment(paystack: MagicMock) -> Callable[..., None]:
    """Make the Paystack double report a transaction for the given amount."""

    def _verified(amount: str, status: str = "success", reference: str = "ref_1") -> None:
        paystack.verify_transaction.return_value = PaystackTransaction(
            reference=reference, status=status, amount=Decimal(amount)
        )

    return _verified


@pytest.fixture
def fund(
    services: dict[str, Any],
    business: Profile,
    verified_payment: Callable[..., None],
) -> Callable[..., dict[str, Any]]:
    """Fund escrow for an application as its campaign owner."""

    def _fund(
        application_id: str, amount: str = "8000", reference: str = "ref_1"
    ) -> dict[str, Any]:
        verified_payment(amount, reference=reference)
        return services["payments"].fund_escrow(
            business, application_id, Decimal(amount), reference
        )

    return _fund


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    return bearer


@pytest.fixture
def token_for() -> Callable[[Profile], dict[str, str]]:
    """Authorization headers for an existing profile."""

    def _headers(profile: Profile) -> dict[str, str]:
        return bearer(issue_token(profile.id, AUTH_SECRET))

    return _headers
