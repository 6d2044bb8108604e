"""HTTP routers for the marketplace API."""

from marketplace.api import (
    applications,
    bank_details,
    campaigns,
    notifications,
    payments,
    payouts,
    platform_settings,
    reviews,
    submissions,
    users,
)

ROUTERS = [
    users.router,
    campaigns.router,
    applications.router,
    payments.router,
    submissions.router,
    payouts.router,
    notifications.router,
    platform_settings.router,
    bank_details.router,
    reviews.router,
]

__all__ = ["ROUTERS"]
