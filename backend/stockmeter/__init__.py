"""StockMeter: metered historical stock data API."""

__version__ = "0.1.0"
