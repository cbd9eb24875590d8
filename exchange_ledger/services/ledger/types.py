# exchange_ledger/services/ledger/types.py
"""
Internal data types for the Ledger Service.

These dataclasses are produced by the ledger engines. They are NOT Pydantic
schemas - those are defined in exchange_ledger/schemas/ledger.py for API
serialization.

Design Principles:
- Use Decimal for ALL monetary values (never float)
- Engines keep full precision; rounding happens only at the API boundary
- Replay state objects are owned by a single engine loop and never shared
- Business-rule violations accumulate as DerivationWarning, never raise

Type Hierarchy:
    Posting             - Signed amount against one account and currency
    DerivationWarning   - Recoverable business-rule violation
    AccountBalance      - Running totals for (partner, medium, currency)
    BalanceSheet        - All account balances
    BalanceView         - Filtered balances with totals
    StockPosition       - WAC inventory for one currency
    SaleResult          - Cost and profit of one SELL
    InventoryResult     - Positions + sales + warnings
    LenderBalance       - Principal/interest state for one lender currency
    LenderSnapshot      - State right after one lender movement
    LenderLedger        - Complete result for one lender
    CommissionReport / ArbitrageReport / CurrentAccountReport / CashRegister
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from exchange_ledger.models import AccountRef, Client, Medium, Movement, Partner
from exchange_ledger.services.exceptions import InvalidIntervalError
from exchange_ledger.utils.date_utils import day_key, in_range, month_key

ZERO = Decimal("0")


# =============================================================================
# POSTINGS & WARNINGS
# =============================================================================

@dataclass(frozen=True)
class Posting:
    """
    A signed amount against one account in one currency.

    Positive amounts are inflows, negative amounts are outflows.
    """

    account: AccountRef
    currency: str
    amount: Decimal

    @property
    def is_inflow(self) -> bool:
        return self.amount > ZERO


class WarningCode:
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    OVER_WITHDRAWAL = "OVER_WITHDRAWAL"


@dataclass(frozen=True)
class DerivationWarning:
    """
    A recoverable business-rule violation found during replay.

    The derivation continues with best-effort values; the warning lets the
    caller surface the problem.
    """

    code: str
    message: str
    movement_date: date | None = None
    currency: str | None = None


# =============================================================================
# BALANCES
# =============================================================================

@dataclass
class AccountBalance:
    """
    Running totals for one (partner, medium, currency) key.

    `inflow` already includes `initial`, so balance = inflow - outflow.
    """

    account: AccountRef
    currency: str
    initial: Decimal = ZERO
    inflow: Decimal = ZERO
    outflow: Decimal = ZERO
    movement_count: int = 0

    @property
    def balance(self) -> Decimal:
        return self.inflow - self.outflow

    @property
    def partner(self) -> Partner:
        return self.account.partner

    @property
    def medium(self) -> Medium:
        return self.account.medium

    @property
    def is_active(self) -> bool:
        """True if anything ever flowed through this key."""
        return self.inflow > ZERO or self.outflow > ZERO

    def apply(self, posting: Posting) -> None:
        if posting.amount >= ZERO:
            self.inflow += posting.amount
        else:
            self.outflow += -posting.amount
        self.movement_count += 1


@dataclass
class BalanceSheet:
    """
    Result of BalanceAggregator.calculate().

    Attributes:
        balances: AccountBalance keyed by (AccountRef, currency)
        skipped_movements: Movements that produced no posting at all
    """

    balances: dict[tuple[AccountRef, str], AccountBalance] = field(default_factory=dict)
    skipped_movements: int = 0

    def get(self, account: AccountRef, currency: str) -> AccountBalance | None:
        return self.balances.get((account, currency))

    def balance_of(self, account: AccountRef, currency: str) -> Decimal:
        """Balance for a key; zero when the key does not exist."""
        entry = self.get(account, currency)
        return entry.balance if entry is not None else ZERO

    def filter(
            self,
            partner: Partner | None = None,
            medium: Medium | None = None,
            active_only: bool = False,
    ) -> list[AccountBalance]:
        """
        Select balances without altering them.

        Args:
            partner: Keep only this partner (None = all)
            medium: Keep only this medium (None = all)
            active_only: Keep only keys with inflow > 0 or outflow > 0

        Returns:
            Matching balances ordered by partner, medium, currency
        """
        entries = [
            entry for entry in self.balances.values()
            if (partner is None or entry.partner == partner)
            and (medium is None or entry.medium == medium)
            and (not active_only or entry.is_active)
        ]
        return sorted(entries, key=lambda e: (e.account.key, e.currency))

    def totals_by_currency(
            self,
            entries: list[AccountBalance] | None = None,
    ) -> dict[str, Decimal]:
        """Sum of balances per currency over `entries` (default: all keys)."""
        source = entries if entries is not None else list(self.balances.values())
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for entry in source:
            totals[entry.currency] += entry.balance
        return dict(sorted(totals.items()))


@dataclass
class BalanceView:
    """Filtered balances plus per-currency totals over the selection."""

    entries: list[AccountBalance] = field(default_factory=list)
    totals: dict[str, Decimal] = field(default_factory=dict)
    skipped_movements: int = 0


# =============================================================================
# INVENTORY
# =============================================================================

@dataclass
class StockPosition:
    """
    Weighted-average-cost stock of one currency.

    Attributes:
        currency: Currency held
        quantity: Units held (never negative)
        total_cost: Cost of the units held, in the associated quote currency
        associated_quote_currency: Quote currency of the most recent BUY
        realized_profit: Profit banked per sale quote currency
    """

    currency: str
    quantity: Decimal = ZERO
    total_cost: Decimal = ZERO
    associated_quote_currency: str | None = None
    realized_profit: dict[str, Decimal] = field(default_factory=dict)

    @property
    def average_cost(self) -> Decimal:
        """total_cost / quantity, or 0 when nothing is held."""
        if self.quantity <= ZERO:
            return ZERO
        return self.total_cost / self.quantity

    @property
    def total_valuation(self) -> Decimal:
        return self.quantity * self.average_cost


@dataclass(frozen=True)
class SaleResult:
    """Cost and profit of a single SELL, computed at its replay position."""

    date: date
    currency: str
    quote_currency: str
    amount: Decimal
    total: Decimal
    unit_cost: Decimal
    cost_of_sale: Decimal
    profit: Decimal
    movement_id: str | None = None


@dataclass
class InventoryResult:
    """
    Result of InventoryEngine.calculate().

    Attributes:
        positions: StockPosition keyed by currency
        sales: One SaleResult per SELL, in replay order
        warnings: Overselling and other recoverable issues
    """

    positions: dict[str, StockPosition] = field(default_factory=dict)
    sales: list[SaleResult] = field(default_factory=list)
    warnings: list[DerivationWarning] = field(default_factory=list)

    def realized_profit_totals(self) -> dict[str, Decimal]:
        """Realized profit across all currencies, keyed by quote currency."""
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for position in self.positions.values():
            for quote_currency, profit in position.realized_profit.items():
                totals[quote_currency] += profit
        return dict(sorted(totals.items()))

    def profit_series(self, interval: str = "monthly") -> dict[str, dict[str, Decimal]]:
        """
        Realized profit bucketed by day or month, then by quote currency.

        Sales with zero profit are left out.

        Args:
            interval: "daily" (YYYY-MM-DD buckets) or "monthly" (YYYY-MM)

        Returns:
            {bucket: {quote_currency: profit}} ordered by bucket

        Raises:
            InvalidIntervalError: If interval is not daily/monthly
        """
        if interval == "daily":
            key_fn = day_key
        elif interval == "monthly":
            key_fn = month_key
        else:
            raise InvalidIntervalError(interval)

        series: dict[str, dict[str, Decimal]] = {}
        for sale in self.sales:
            if sale.profit == ZERO:
                continue
            bucket = series.setdefault(key_fn(sale.date), {})
            bucket[sale.quote_currency] = bucket.get(sale.quote_currency, ZERO) + sale.profit
        return dict(sorted(series.items()))

    def profit_between(self, start: date | None, end: date | None) -> dict[str, Decimal]:
        """Realized profit per quote currency for sales dated within [start, end]."""
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for sale in self.sales:
            if sale.profit != ZERO and in_range(sale.date, start, end):
                totals[sale.quote_currency] += sale.profit
        return dict(sorted(totals.items()))


# =============================================================================
# LENDERS
# =============================================================================

@dataclass
class LenderBalance:
    """
    Principal and accrued interest owed to a lender in one currency.

    Positive net_balance means the business owes the lender.
    """

    currency: str
    principal: Decimal = ZERO
    accrued_interest: Decimal = ZERO
    effective_rate: Decimal = ZERO
    last_accrual_date: date | None = None

    @property
    def net_balance(self) -> Decimal:
        return self.principal + self.accrued_interest


@dataclass(frozen=True)
class LenderSnapshot:
    """
    Lender state right after applying one movement.

    Attributes:
        movement: The movement applied
        currency: Currency of the movement
        interest_accrued: Interest accrued between the previous movement and this one
        principal_after: Principal after the movement
        interest_after: Accrued interest after the movement
        net_balance_after: principal_after + interest_after
    """

    movement: Movement
    currency: str
    interest_accrued: Decimal
    principal_after: Decimal
    interest_after: Decimal
    net_balance_after: Decimal


@dataclass
class LenderLedger:
    """
    Result of LenderAccrualEngine.calculate() for one lender.

    Attributes:
        lender: The lender client
        as_of: Instant interest was accrued up to
        balances: LenderBalance keyed by currency
        snapshots: One snapshot per applied movement, chronological
        total_lent: Sum of LOAN amounts per currency
        total_withdrawn: Sum of withdrawal amounts per currency
        movement_count: Number of movements applied
        warnings: Over-withdrawals and other recoverable issues
    """

    lender: Client
    as_of: date | None = None
    balances: dict[str, LenderBalance] = field(default_factory=dict)
    snapshots: list[LenderSnapshot] = field(default_factory=list)
    total_lent: dict[str, Decimal] = field(default_factory=dict)
    total_withdrawn: dict[str, Decimal] = field(default_factory=dict)
    movement_count: int = 0
    warnings: list[DerivationWarning] = field(default_factory=list)

    def balance_for(self, currency: str) -> LenderBalance:
        """Balance for a currency; an all-zero balance when none exists."""
        balance = self.balances.get(currency)
        if balance is None:
            return LenderBalance(currency=currency)
        return balance

    @property
    def history(self) -> list[LenderSnapshot]:
        """Snapshots, newest first."""
        return list(reversed(self.snapshots))

    @property
    def has_activity(self) -> bool:
        return self.movement_count > 0


# =============================================================================
# REPORTS
# =============================================================================

@dataclass
class CommissionReport:
    """
    Commissions charged on non-arbitrage movements.

    All maps are keyed by commission currency at the innermost level.
    """

    totals: dict[str, Decimal] = field(default_factory=dict)
    monthly: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    daily: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    by_provider: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    current_account_totals: dict[str, Decimal] = field(default_factory=dict)
    movement_count: int = 0


@dataclass
class ArbitrageReport:
    """Arbitrage profit (the commission of each arbitrage) per currency."""

    totals: dict[str, Decimal] = field(default_factory=dict)
    monthly: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    by_client: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    operation_count: int = 0
    profitable_count: int = 0


@dataclass
class ProviderBalance:
    """
    Current account with one provider in one currency.

    A positive balance means the provider holds funds for the business.
    """

    provider: str
    currency: str
    inflow: Decimal = ZERO
    outflow: Decimal = ZERO
    movement_count: int = 0

    @property
    def balance(self) -> Decimal:
        return self.inflow - self.outflow

    @property
    def owed_by_provider(self) -> Decimal:
        return self.balance if self.balance >= ZERO else ZERO

    @property
    def owed_to_provider(self) -> Decimal:
        return -self.balance if self.balance < ZERO else ZERO

    @property
    def is_active(self) -> bool:
        return self.inflow > ZERO or self.outflow > ZERO or self.balance != ZERO


@dataclass
class CurrentAccountReport:
    """Result of CurrentAccountCalculator.calculate()."""

    accounts: list[ProviderBalance] = field(default_factory=list)

    def for_provider(self, provider: str) -> list[ProviderBalance]:
        return [a for a in self.accounts if a.provider == provider]

    def provider_totals(self) -> dict[str, dict[str, Decimal]]:
        """Owed amounts summed per provider across currencies."""
        totals: dict[str, dict[str, Decimal]] = {}
        for account in self.accounts:
            entry = totals.setdefault(
                account.provider,
                {"owed_by_provider": ZERO, "owed_to_provider": ZERO},
            )
            entry["owed_by_provider"] += account.owed_by_provider
            entry["owed_to_provider"] += account.owed_to_provider
        return totals


@dataclass
class CashRegisterLine:
    """Daily close for one (currency, medium) across all partners."""

    currency: str
    medium: Medium
    opening: Decimal = ZERO
    inflow: Decimal = ZERO
    outflow: Decimal = ZERO
    counted: Decimal = ZERO

    @property
    def expected(self) -> Decimal:
        return self.opening + self.inflow - self.outflow

    @property
    def difference(self) -> Decimal:
        return self.counted - self.expected

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) < Decimal("0.01")

    @property
    def is_active(self) -> bool:
        return (
            self.opening > ZERO
            or self.inflow > ZERO
            or self.outflow > ZERO
            or self.counted > ZERO
        )


@dataclass
class CashRegister:
    """Result of CashRegisterCalculator.calculate() for one date."""

    date: date
    lines: list[CashRegisterLine] = field(default_factory=list)

    @property
    def is_balanced(self) -> bool:
        return all(line.is_balanced for line in self.lines)
