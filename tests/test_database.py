"""
Tests for the SQLite repository, the async store facade and attachment storage.
"""

import asyncio
import pytest
from decimal import Decimal
from datetime import datetime

from tradelog.errors import PersistenceError
from tradelog.models import Trade, TradeCategory, TradeStatus

from conftest import OWNER


class TestTradeJournalDB:
    def test_add_and_get_round_trip(self, db, mtf_trade):
        mtf_trade.tags = ['swing']
        mtf_trade.image_paths = ['a.jpg']
        trade_id = db.add_trade(mtf_trade, OWNER)
        loaded = db.get_trade(trade_id)
        assert loaded.id == trade_id
        assert loaded.user_id == OWNER
        assert loaded.entry_price == Decimal('100')
        assert loaded.interest_per_day == Decimal('2')
        assert loaded.exit_date == mtf_trade.exit_date
        assert loaded.date == mtf_trade.date
        assert loaded.tags == ['swing']
        assert loaded.image_paths == ['a.jpg']
        assert loaded.category == TradeCategory.MTF
        assert loaded.net_pnl == Decimal('80')

    def test_add_does_not_touch_caller_trade(self, db, intraday_win):
        db.add_trade(intraday_win, OWNER)
        assert intraday_win.id is None
        assert intraday_win.user_id == ''

    def test_symbol_normalised(self, db):
        trade_id = db.add_trade(Trade(symbol='  hdfcbank ', entry_price=Decimal('1')), OWNER)
        assert db.get_trade(trade_id).symbol == 'HDFCBANK'

    def test_decimal_precision_preserved(self, db):
        trade_id = db.add_trade(Trade(symbol='X', entry_price=Decimal('0.1'),
                                      charges=Decimal('12.345')), OWNER)
        loaded = db.get_trade(trade_id)
        assert loaded.entry_price == Decimal('0.1')
        assert loaded.charges == Decimal('12.345')

    def test_list_newest_first_and_owner_scoped(self, db, sample_trades):
        for t in sample_trades:
            db.add_trade(t, OWNER)
        db.add_trade(Trade(symbol='OTHER', entry_price=Decimal('1')), 'someone_else')
        trades = db.list_trades(OWNER)
        assert len(trades) == len(sample_trades)
        dates = [t.date for t in trades]
        assert dates == sorted(dates, reverse=True)

    def test_update(self, db, intraday_win):
        trade_id = db.add_trade(intraday_win, OWNER)
        loaded = db.get_trade(trade_id)
        loaded.exit_price = Decimal('120')
        loaded.notes = 'trailed'
        db.update_trade(loaded)
        again = db.get_trade(trade_id)
        assert again.exit_price == Decimal('120')
        assert again.notes == 'trailed'

    def test_update_unknown_id(self, db, intraday_win):
        intraday_win.id = 'missing'
        with pytest.raises(PersistenceError) as exc:
            db.update_trade(intraday_win)
        assert exc.value.trade_id == 'missing'

    def test_update_without_id(self, db, intraday_win):
        with pytest.raises(PersistenceError):
            db.update_trade(intraday_win)

    def test_delete(self, db, intraday_win):
        trade_id = db.add_trade(intraday_win, OWNER)
        db.delete_trade(trade_id)
        assert db.get_trade(trade_id) is None
        with pytest.raises(PersistenceError):
            db.delete_trade(trade_id)

    def test_capital_upsert(self, db):
        assert db.get_user(OWNER) is None
        db.set_capital(OWNER, Decimal('100000'))
        db.set_capital(OWNER, Decimal('250000.50'))
        assert db.get_user(OWNER).capital == Decimal('250000.50')

    def test_closed_connection_raises_persistence_error(self, db):
        db.close()
        with pytest.raises(PersistenceError):
            db.list_trades(OWNER)


class TestTradeStore:
    def test_add_stamps_owner(self, store):
        trade_id = asyncio.run(store.add_trade(Trade(symbol='abc', entry_price=Decimal('5'),
                                                     user_id='spoofed')))
        loaded = asyncio.run(store.get_trade(trade_id))
        assert loaded.user_id == OWNER
        assert [t.id for t in asyncio.run(store.fetch_trades())] == [trade_id]

    def test_update_and_delete(self, store, intraday_win):
        trade_id = asyncio.run(store.add_trade(intraday_win))
        loaded = asyncio.run(store.get_trade(trade_id))
        loaded.status = TradeStatus.EXECUTED
        asyncio.run(store.update_trade(loaded))
        assert asyncio.run(store.get_trade(trade_id)).status == TradeStatus.EXECUTED
        asyncio.run(store.delete_trade(trade_id))
        assert asyncio.run(store.fetch_trades()) == []

    def test_capital(self, store):
        assert asyncio.run(store.fetch_capital()) is None
        asyncio.run(store.set_capital(None, Decimal('50000')))
        assert asyncio.run(store.fetch_capital()) == Decimal('50000')
        assert asyncio.run(store.fetch_capital('nobody')) is None


class TestAttachmentStore:
    def test_save_load_delete(self, attachments):
        ref = attachments.save(b'\xff\xd8jpeg')
        assert ref.endswith('.jpg')
        assert attachments.load(ref) == b'\xff\xd8jpeg'
        attachments.delete(ref)
        assert attachments.load(ref) is None

    def test_missing_reference(self, attachments):
        assert attachments.load('nope.jpg') is None
        attachments.delete('nope.jpg')

    def test_path_like_reference_rejected(self, attachments, tmp_path):
        (tmp_path / 'secret.txt').write_bytes(b'x')
        assert attachments.load('../secret.txt') is None
        attachments.delete('../secret.txt')
        assert (tmp_path / 'secret.txt').exists()

    def test_references_unique(self, attachments):
        assert attachments.save(b'a') != attachments.save(b'a')
