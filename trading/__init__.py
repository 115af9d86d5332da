"""Portfolio valuation and trade execution core.

Modules are imported directly (``from trading.executor import TradeExecutor``);
this package does not re-export them so that ``api_client`` can depend on
``trading.errors`` without import cycles.
"""
