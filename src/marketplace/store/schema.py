"""SQLite schema for the marketplace tables.

Money columns are TEXT holding ``Decimal`` strings.  List and JSON columns are
TEXT holding JSON.  Timestamps are ``YYYY-MM-DDTHH:MM:SSZ`` strings.
"""

from __future__ import annotations

import sqlite3

_TIMESTAMP_DEFAULT = "(strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))"

_TABLES = f"""
CREATE TABLE IF NOT EXISTS profiles (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    role TEXT NOT NULL,
    display_name TEXT NOT NULL,
    company_name TEXT,
    instagram_handle TEXT,
    tiktok_handle TEXT,
    youtube_handle TEXT,
    follower_count INTEGER,
    created_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    updated_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT}
);

CREATE TABLE IF NOT EXISTS campaigns (
    id TEXT PRIMARY KEY,
    business_id TEXT NOT NULL REFERENCES profiles (id),
    title TEXT NOT NULL,
    description TEXT NOT NULL,
    requirements TEXT,
    budget_min TEXT,
    budget_max TEXT,
    deliverables TEXT NOT NULL DEFAULT '[]',
    platforms TEXT NOT NULL DEFAULT '[]',
    target_audience TEXT,
    start_date TEXT,
    end_date TEXT,
    application_deadline TEXT,
    required_influencers INTEGER NOT NULL DEFAULT 1,
    status TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    updated_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT}
);

CREATE TABLE IF NOT EXISTS applications (
    id TEXT PRIMARY KEY,
    campaign_id TEXT NOT NULL REFERENCES campaigns (id) ON DELETE CASCADE,
    influencer_id TEXT NOT NULL REFERENCES profiles (id),
    proposal TEXT,
    proposed_rate TEXT,
    estimated_reach INTEGER,
    portfolio_links TEXT NOT NULL DEFAULT '[]',
    status TEXT NOT NULL,
    review_notes TEXT,
    submitted_at TEXT NOT NULL,
    reviewed_at TEXT,
    work_submitted_at TEXT,
    created_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    updated_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    UNIQUE (campaign_id, influencer_id)
);

CREATE TABLE IF NOT EXISTS payments (
    id TEXT PRIMARY KEY,
    application_id TEXT NOT NULL UNIQUE REFERENCES applications (id) ON DELETE CASCADE,
    amount TEXT NOT NULL,
    currency TEXT NOT NULL,
    status TEXT NOT NULL,
    paystack_reference TEXT UNIQUE,
    paid_at TEXT,
    created_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    updated_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT}
);

CREATE TABLE IF NOT EXISTS escrow_accounts (
    id TEXT PRIMARY KEY,
    application_id TEXT NOT NULL REFERENCES applications (id) ON DELETE CASCADE,
    payment_id TEXT NOT NULL REFERENCES payments (id) ON DELETE CASCADE,
    amount TEXT NOT NULL,
    currency TEXT NOT NULL,
    status TEXT NOT NULL,
    auto_release_date TEXT NOT NULL,
    released_at TEXT,
    created_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    updated_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT}
);

CREATE TABLE IF NOT EXISTS submissions (
    id TEXT PRIMARY KEY,
    application_id TEXT NOT NULL UNIQUE REFERENCES applications (id) ON DELETE CASCADE,
    influencer_id TEXT NOT NULL REFERENCES profiles (id),
    campaign_id TEXT NOT NULL REFERENCES campaigns (id) ON DELETE CASCADE,
    business_id TEXT NOT NULL REFERENCES profiles (id),
    title TEXT,
    description TEXT,
    notes TEXT,
    images TEXT NOT NULL DEFAULT '[]',
    videos TEXT NOT NULL DEFAULT '[]',
    links TEXT NOT NULL DEFAULT '[]',
    documents TEXT NOT NULL DEFAULT '[]',
    status TEXT NOT NULL,
    review_notes TEXT,
    auto_approve_date TEXT NOT NULL,
    submitted_at TEXT NOT NULL,
    reviewed_at TEXT,
    created_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    updated_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT}
);

CREATE TABLE IF NOT EXISTS influencer_balances (
    influencer_id TEXT PRIMARY KEY REFERENCES profiles (id),
    available_balance TEXT NOT NULL DEFAULT '0',
    pending_balance TEXT NOT NULL DEFAULT '0',
    total_earned TEXT NOT NULL DEFAULT '0',
    currency TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT}
);

CREATE TABLE IF NOT EXISTS payout_requests (
    id TEXT PRIMARY KEY,
    influencer_id TEXT NOT NULL REFERENCES profiles (id),
    amount TEXT NOT NULL,
    platform_fee TEXT NOT NULL,
    net_amount TEXT NOT NULL,
    currency TEXT NOT NULL,
    status TEXT NOT NULL,
    payment_method TEXT NOT NULL,
    paystack_transfer_id TEXT,
    processed_at TEXT,
    created_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    updated_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT}
);

CREATE TABLE IF NOT EXISTS notifications (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES profiles (id),
    type TEXT NOT NULL,
    title TEXT NOT NULL,
    message TEXT NOT NULL,
    data TEXT NOT NULL DEFAULT '{{}}',
    is_read INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT}
);

CREATE TABLE IF NOT EXISTS platform_settings (
    setting_key TEXT PRIMARY KEY,
    setting_value TEXT NOT NULL,
    description TEXT,
    created_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    updated_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT}
);

CREATE TABLE IF NOT EXISTS bank_details (
    id TEXT PRIMARY KEY,
    influencer_id TEXT NOT NULL REFERENCES profiles (id),
    bank_name TEXT NOT NULL,
    account_holder_name TEXT NOT NULL,
    account_number TEXT NOT NULL,
    routing_number TEXT,
    swift_code TEXT,
    currency TEXT NOT NULL,
    account_type TEXT NOT NULL,
    is_primary INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1,
    is_verified INTEGER NOT NULL DEFAULT 0,
    verification_method TEXT,
    verified_at TEXT,
    created_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    updated_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT}
);

CREATE TABLE IF NOT EXISTS influencer_reviews (
    id TEXT PRIMARY KEY,
    campaign_id TEXT NOT NULL REFERENCES campaigns (id) ON DELETE CASCADE,
    business_id TEXT NOT NULL REFERENCES profiles (id),
    influencer_id TEXT NOT NULL REFERENCES profiles (id),
    application_id TEXT NOT NULL REFERENCES applications (id) ON DELETE CASCADE,
    overall_rating INTEGER NOT NULL,
    title TEXT,
    review_text TEXT,
    communication_rating INTEGER,
    content_quality_rating INTEGER,
    professionalism_rating INTEGER,
    timeliness_rating INTEGER,
    would_work_again INTEGER NOT NULL DEFAULT 0,
    is_public INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    updated_at TEXT NOT NULL DEFAULT {_TIMESTAMP_DEFAULT},
    UNIQUE (campaign_id, business_id, influencer_id)
);
"""

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_campaigns_business ON campaigns (business_id)",
    "CREATE INDEX IF NOT EXISTS idx_campaigns_status ON campaigns (status)",
    "CREATE INDEX IF NOT EXISTS idx_applications_influencer ON applications (influencer_id)",
    "CREATE INDEX IF NOT EXISTS idx_escrow_application ON escrow_accounts (application_id)",
    # At most one held escrow per application.
    (
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_escrow_one_held "
        "ON escrow_accounts (application_id) WHERE status = 'held'"
    ),
    "CREATE INDEX IF NOT EXISTS idx_escrow_status ON escrow_accounts (status, auto_release_date)",
    "CREATE INDEX IF NOT EXISTS idx_payouts_influencer ON payout_requests (influencer_id)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications (user_id, is_read)",
    "CREATE INDEX IF NOT EXISTS idx_bank_details_influencer ON bank_details (influencer_id)",
    "CREATE INDEX IF NOT EXISTS idx_reviews_influencer ON influencer_reviews (influencer_id)",
]

# Settings seeded on first start; existing values are never overwritten.
DEFAULT_PLATFORM_SETTINGS: list[tuple[str, str, str]] = [
    (
        "platform_fee_percentage",
        "10",
        "Percentage withheld from each influencer payout",
    ),
]


def init_marketplace_schema(conn: sqlite3.Connection) -> None:
    """Create all marketplace tables and indexes if they do not already exist.

    Also seeds :data:`DEFAULT_PLATFORM_SETTINGS`.

    Args:
        conn: An open sqlite3.Connection.
    """
    conn.executescript(_TABLES)
    for statement in _INDEXES:
        conn.execute(statement)
    conn.executemany(
        "INSERT OR IGNORE INTO platform_settings (setting_key, setting_value, description) "
        "VALUES (?, ?, ?)",
        DEFAULT_PLATFORM_SETTINGS,
    )
    conn.commit()
