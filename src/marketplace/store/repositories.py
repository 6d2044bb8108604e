"""Bundle of every table repository bound to one connection."""

from __future__ import annotations

from marketplace.store.applications import ApplicationRepository, SubmissionRepository
from marketplace.store.balances import BalanceRepository, PayoutRepository
from marketplace.store.bank_details import BankDetailsRepository
from marketplace.store.campaigns import CampaignRepository
from marketplace.store.database import Database
from marketplace.store.notifications import NotificationRepository
from marketplace.store.payments import EscrowRepository, PaymentRepository
from marketplace.store.profiles import ProfileRepository
from marketplace.store.reviews import ReviewRepository
from marketplace.store.settings import PlatformSettingRepository


class Repositories:
    """Every repository the services use, sharing ``db``'s connection."""

    def __init__(self, db: Database) -> None:
        self.db = db
        conn = db.conn
        self.profiles = ProfileRepository(conn)
        self.campaigns = CampaignRepository(conn)
        self.applications = ApplicationRepository(conn)
        self.submissions = SubmissionRepository(conn)
        self.payments = PaymentRepository(conn)
        self.escrows = EscrowRepository(conn)
        self.balances = BalanceRepository(conn)
        self.payouts = PayoutRepository(conn)
        self.notifications = NotificationRepository(conn)
        self.settings = PlatformSettingRepository(conn)
        self.bank_details = BankDetailsRepository(conn)
        self.reviews = ReviewRepository(conn)
