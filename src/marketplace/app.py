"""Application entry point for the influencer marketplace API.

Runs the FastAPI server and the escrow auto-release sweep concurrently in a
single long-running process.

Configures:
- **structlog** with JSON rendering (production) or colored console (development)
- **Sentry** error reporting through the structlog bridge when a DSN is set
- **Retry logic** for Paystack calls with Slack ops-channel alerts on exhaustion
- **Prometheus** HTTP and business metrics at ``/metrics``
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, TextIO

import structlog
import uvicorn
from fastapi import FastAPI

from marketplace.api import ROUTERS
from marketplace.api.errors import register_exception_handlers
from marketplace.audit import AuditLogger
from marketplace.config import Settings, get_settings, validate_credentials
from marketplace.health import register_health_routes
from marketplace.observability.metrics import setup_metrics
from marketplace.observability.middleware import RequestIdMiddleware
from marketplace.observability.sentry import get_sentry_processor, init_sentry
from marketplace.paystack import PaystackClient
from marketplace.resilience import configure_error_notifier
from marketplace.services.applications import ApplicationService
from marketplace.services.bank_details import BankDetailsService
from marketplace.services.campaigns import CampaignService
from marketplace.services.notifications import NotificationService, Notifier
from marketplace.services.payments import PaymentService
from marketplace.services.payouts import PayoutService
from marketplace.services.reviews import ReviewService
from marketplace.services.settings import PlatformSettingService
from marketplace.services.submissions import SubmissionService
from marketplace.services.users import UserService
from marketplace.slack import SlackNotifier
from marketplace.store import Database, Repositories, open_database

logger = structlog.get_logger()


def configure_logging(
    production: bool = False,
    sentry_enabled: bool = False,
    log_file: TextIO | None = None,
    cache_loggers: bool = True,
) -> None:
    """Configure structlog for production (JSON) or development (console).

    Args:
        production: JSON rendering at INFO level if ``True``, else colored
            console rendering at DEBUG level.
        sentry_enabled: Forward ERROR events to Sentry.
        log_file: Stream the rendered lines go to; stdout when omitted.
        cache_loggers: Freeze each logger on first use. One-shot commands
            turn this off so later reconfiguration still applies.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if sentry_enabled:
        shared_processors.append(get_sentry_processor())

    if production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=log_file),
        cache_logger_on_first_use=cache_loggers,
    )

    structlog.contextvars.bind_contextvars(service="influencer-marketplace")


def initialize_services(
    settings: Settings | None = None,
    *,
    db: Database | None = None,
    paystack: PaystackClient | None = None,
    slack_notifier: SlackNotifier | None = None,
) -> dict[str, Any]:
    """Set up all shared services for the application.

    Opens the database, creates the audit logger, the Paystack and Slack
    clients, and every domain service.  Tests pass their own ``db``,
    ``paystack`` and ``slack_notifier``.

    Args:
        settings: Application settings.  If ``None``, ``get_settings()`` is used.
        db: An already-open database.  Opened from ``settings.database_path``
            when omitted.
        paystack: Paystack client override.
        slack_notifier: Slack notifier override.

    Returns:
        A dict of initialized service instances keyed by name.
    """
    if settings is None:
        settings = get_settings()

    services: dict[str, Any] = {"_settings": settings}

    # a. Marketplace database and repositories
    if db is None:
        settings.database_path.parent.mkdir(parents=True, exist_ok=True)
        db = open_database(settings.database_path)
    repos = Repositories(db)
    services["db"] = db
    services["repos"] = repos

    # b. Audit trail on the same database
    audit_logger = AuditLogger(db)
    services["audit_logger"] = audit_logger

    # c. SlackNotifier (if slack_bot_token available)
    if slack_notifier is None:
        slack_bot_token = settings.slack_bot_token.get_secret_value()
        if slack_bot_token and settings.slack_ops_channel:
            try:
                slack_notifier = SlackNotifier(
                    ops_channel=settings.slack_ops_channel,
                    bot_token=slack_bot_token,
                )
                logger.info("SlackNotifier initialized")
            except Exception:
                logger.warning("Failed to initialize SlackNotifier", exc_info=True)
        else:
            logger.info("SLACK_BOT_TOKEN not set, SlackNotifier disabled")
    services["slack_notifier"] = slack_notifier

    # d. Resilience error notifier
    if slack_notifier is not None:
        configure_error_notifier(slack_notifier)
        logger.info("Error notifier configured for retry exhaustion alerts")

    # e. Paystack gateway
    if paystack is None:
        paystack = PaystackClient(
            settings.paystack_secret_key.get_secret_value(),
            base_url=settings.paystack_base_url,
        )
    services["paystack"] = paystack

    # f. Domain services
    notifier = Notifier(repos)
    campaigns = CampaignService(repos, audit_logger)
    applications = ApplicationService(
        repos, audit_logger, notifier, campaigns, settings.currency
    )
    payments = PaymentService(
        repos,
        audit_logger,
        notifier,
        paystack,
        applications,
        campaigns,
        currency=settings.currency,
        escrow_hold_days=settings.escrow_hold_days,
    )
    services.update(
        {
            "notifier": notifier,
            "users": UserService(repos, settings.auth_secret.get_secret_value()),
            "campaigns": campaigns,
            "applications": applications,
            "payments": payments,
            "submissions": SubmissionService(
                repos,
                audit_logger,
                notifier,
                applications,
                campaigns,
                payments,
                review_days=settings.submission_review_days,
            ),
            "payouts": PayoutService(
                repos,
                audit_logger,
                notifier,
                slack_notifier,
                currency=settings.currency,
                default_fee_percentage=settings.default_platform_fee_percentage,
            ),
            "notifications": NotificationService(repos, notifier),
            "platform_settings": PlatformSettingService(repos),
            "bank_details": BankDetailsService(repos, settings.currency),
            "reviews": ReviewService(repos),
        }
    )

    logger.info("Services initialized", services=sorted(k for k in services if k[0] != "_"))
    return services


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Log startup, and close the Paystack client and database on shutdown."""
    services = app.state.services
    logger.info("FastAPI application starting")
    yield
    paystack = services.get("paystack")
    if isinstance(paystack, PaystackClient):
        paystack.close()
    db = services.get("db")
    if db is not None:
        db.close()
        logger.info("Marketplace database connection closed")


def create_app(services: dict[str, Any]) -> FastAPI:
    """Create the FastAPI app with middleware, error handlers, and all routers.

    Args:
        services: The initialized services dict from ``initialize_services``.

    Returns:
        The configured FastAPI application.
    """
    fastapi_app = FastAPI(title="Influencer Marketplace", lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.state.settings = services.get("_settings") or get_settings()
    fastapi_app.add_middleware(RequestIdMiddleware)
    register_exception_handlers(fastapi_app)
    for router in ROUTERS:
        fastapi_app.include_router(router)
    register_health_routes(fastapi_app)
    setup_metrics(fastapi_app)
    return fastapi_app


async def release_due_escrows_periodically(
    services: dict[str, Any], interval_seconds: int
) -> None:
    """Run the escrow auto-release sweep every *interval_seconds*.

    Args:
        services: The initialized services dict.
        interval_seconds: Pause between sweeps.
    """
    submissions: SubmissionService = services["submissions"]
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            released = await asyncio.to_thread(submissions.release_due_escrows)
            logger.info("Escrow auto-release sweep finished", released=len(released))
        except Exception:
            logger.exception("Escrow auto-release sweep failed")


async def main() -> None:
    """Main entry point: run FastAPI and the auto-release sweep concurrently.

    1. Configure Sentry and logging
    2. Validate credentials
    3. Initialize services and create the FastAPI app
    4. Run uvicorn + escrow auto-release with asyncio.gather
    5. Close the database on exit
    """
    settings = get_settings()
    sentry_enabled = init_sentry(
        settings.sentry_dsn, "production" if settings.production else "development"
    )
    configure_logging(production=settings.production, sentry_enabled=sentry_enabled)
    logger.info("Application starting")

    validate_credentials(settings)

    services = initialize_services(settings)
    fastapi_app = create_app(services)

    config = uvicorn.Config(
        fastapi_app,
        host="0.0.0.0",
        port=settings.port,
        log_level="info",
    )
    server = uvicorn.Server(config)

    try:
        await asyncio.gather(
            server.serve(),
            release_due_escrows_periodically(services, settings.auto_release_interval_seconds),
        )
    finally:
        services["db"].close()
        logger.info("Marketplace database connection closed on shutdown")


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
