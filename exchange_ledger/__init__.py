# exchange_ledger/__init__.py
"""
Exchange Ledger.

Ledger derivation engine for a currency-exchange business. Turns an
unordered collection of movement records into:
- Account balances per partner, medium and currency
- Weighted-average-cost stock positions and realized profit
- Lender principal and accrued interest balances
"""

__version__ = "0.1.0"
