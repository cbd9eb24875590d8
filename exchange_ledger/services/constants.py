# exchange_ledger/services/constants.py
"""
Centralized constants for the Exchange Ledger services.

Usage:
    from exchange_ledger.services.constants import (
        DISPLAY_QUANTUM,
        PROFIT_INTERVALS,
    )
"""

from decimal import Decimal

from exchange_ledger.models import EntryStatus


# =============================================================================
# ROUNDING
# =============================================================================

# Engines keep full Decimal precision; these quanta apply to API output only
DISPLAY_QUANTUM: Decimal = Decimal("0.01")
UNIT_COST_QUANTUM: Decimal = Decimal("0.00000001")
RATE_QUANTUM: Decimal = Decimal("0.0001")


# =============================================================================
# SERIES & REPORTS
# =============================================================================

# Bucket intervals accepted by the profit series
PROFIT_INTERVALS: tuple[str, ...] = ("daily", "monthly")

# Provider label for commissions charged on direct (non current-account) operations
DIRECT_OPERATIONS_PROVIDER: str = "DIRECT"

# Movement statuses shown in the pending list
PENDING_STATUSES: tuple[str, ...] = (
    EntryStatus.PENDING_WITHDRAWAL.value,
    EntryStatus.PENDING_DELIVERY.value,
)

# Client type that marks a client as a lender
LENDER_CLIENT_TYPE: str = "lender"

# Longest loan term accepted on a movement record, in days
MAX_LAPSE_DAYS: int = 36_500


# =============================================================================
# RATE LIMITING
# =============================================================================
# Format: "N/period" where period is second, minute, hour, or day

# Default for endpoints without a specific limit
RATE_LIMIT_DEFAULT: str = "100/minute"

# Derivation endpoints replay the full movement set on every call
RATE_LIMIT_LEDGER: str = "30/minute"

# Health checks (monitoring probes)
RATE_LIMIT_HEALTH: str = "300/minute"
