"""
Test Fixtures: shared across the test modules.

Provides:
- Known Decimal constants and dates for reproducibility
- Sample trades covering the main categories
- A temporary SQLite database, async store, attachment store and service
- A Flask test client wired to the temporary storage
"""

import pytest
from decimal import Decimal
from datetime import datetime, timedelta

from tradelog.attachments import AttachmentStore
from tradelog.config import Settings
from tradelog.database import TradeJournalDB
from tradelog.models import Trade, TradeCategory, TradeStatus, TradeType
from tradelog.service import JournalService
from tradelog.store import TradeStore


# =============================================================================
# Known constants for deterministic tests
# =============================================================================

OWNER = 'test_user'
DAY0 = datetime(2024, 6, 10, 9, 30)
AS_OF = datetime(2024, 7, 1, 15, 30)


# =============================================================================
# Domain object fixtures
# =============================================================================

@pytest.fixture
def intraday_win():
    """Intraday buy 10 @ 100 -> 110 with 5 charges: gross 100, net 95."""
    return Trade(
        symbol='RELIANCE',
        type=TradeType.BUY,
        category=TradeCategory.INTRADAY,
        entry_price=Decimal('100'),
        target_price=Decimal('112'),
        stop_loss=Decimal('96'),
        exit_price=Decimal('110'),
        quantity=10,
        charges=Decimal('5'),
        status=TradeStatus.CLOSED,
        date=DAY0,
    )


@pytest.fixture
def mtf_trade():
    """MTF buy 5 @ 100 -> 120, 10 charges, 2/day interest over 5 days: net 80."""
    return Trade(
        symbol='TATAMOTORS',
        type=TradeType.BUY,
        category=TradeCategory.MTF,
        entry_price=Decimal('100'),
        exit_price=Decimal('120'),
        quantity=5,
        charges=Decimal('10'),
        interest_per_day=Decimal('2'),
        status=TradeStatus.CLOSED,
        date=DAY0,
        exit_date=DAY0 + timedelta(days=5),
    )


@pytest.fixture
def fno_loss():
    """F&O sell 50 @ 200 -> 210: gross -500, net -520."""
    return Trade(
        symbol='NIFTY24JUNFUT',
        type=TradeType.SELL,
        category=TradeCategory.FNO,
        entry_price=Decimal('200'),
        target_price=Decimal('180'),
        stop_loss=Decimal('210'),
        exit_price=Decimal('210'),
        quantity=50,
        charges=Decimal('20'),
        status=TradeStatus.CLOSED,
        date=datetime(2024, 6, 12, 11, 0),
    )


@pytest.fixture
def open_delivery():
    """Delivery buy with no exit yet: unrealised."""
    return Trade(
        symbol='INFY',
        category=TradeCategory.DELIVERY,
        entry_price=Decimal('1500'),
        quantity=3,
        status=TradeStatus.EXECUTED,
        date=datetime(2024, 5, 2, 10, 0),
    )


@pytest.fixture
def dividend():
    """Dividend of 7.5/share on 40 shares: gross 300."""
    return Trade(
        symbol='ITC',
        category=TradeCategory.DIVIDEND,
        entry_price=Decimal('7.5'),
        quantity=40,
        status=TradeStatus.CLOSED,
        date=datetime(2024, 3, 15, 12, 0),
    )


@pytest.fixture
def sample_trades(intraday_win, mtf_trade, fno_loss, open_delivery, dividend):
    return [intraday_win, mtf_trade, fno_loss, open_delivery, dividend]


# =============================================================================
# Storage fixtures
# =============================================================================

@pytest.fixture
def db(tmp_path):
    """Fresh SQLite file per test."""
    database = TradeJournalDB(str(tmp_path / 'journal.db'))
    yield database
    database.close()


@pytest.fixture
def store(db):
    return TradeStore(db, OWNER)


@pytest.fixture
def attachments(tmp_path):
    return AttachmentStore(tmp_path / 'attachments')


@pytest.fixture
def service(store, attachments):
    return JournalService(store, attachments)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        db_path=str(tmp_path / 'web.db'),
        attachments_dir=str(tmp_path / 'web_attachments'),
        owner_id=OWNER,
    )


@pytest.fixture
def client(settings):
    from tradelog.app import create_app
    app = create_app(settings)
    app.config['TESTING'] = True
    return app.test_client()
