"""Personal trading journal: trade records, P&L analytics and CSV import/export."""

__version__ = "0.1.0"
