# exchange_ledger/routers/ledger.py
"""
Ledger derivation endpoints.

Every endpoint receives the full movement collection in the request body
and returns a derived view. Nothing is stored between requests.

- POST /ledger/balances          - Account balances (+ totals per currency)
- POST /ledger/inventory         - WAC stock, sales and realized profit
- POST /ledger/lenders           - Summary for every lender
- POST /ledger/lenders/{id}      - One lender with movement history
- POST /ledger/commissions       - Commission report
- POST /ledger/arbitrage         - Arbitrage profit report
- POST /ledger/current-accounts  - Provider current accounts
- POST /ledger/cash-register     - Daily cash close
- POST /ledger/pending           - Movements pending withdrawal/delivery

Service exceptions (InvalidIntervalError, InvalidFilterError,
LenderNotFoundError, TooManyMovementsError) propagate to the global
handlers in main.py.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, localcontext

from fastapi import APIRouter, Depends, Query, Request

from exchange_ledger.dependencies import get_ledger_service
from exchange_ledger.middleware.rate_limit import limiter, RATE_LIMIT_LEDGER
from exchange_ledger.services.constants import (
    DISPLAY_QUANTUM,
    PROFIT_INTERVALS,
    RATE_QUANTUM,
    UNIT_COST_QUANTUM,
)
from exchange_ledger.services.exceptions import InvalidIntervalError
from exchange_ledger.services.ledger import (
    AccountBalance,
    CashRegisterLine,
    DerivationWarning,
    LedgerService,
    LenderLedger,
    LenderSnapshot,
    ProviderBalance,
    SaleResult,
    StockPosition,
)
from exchange_ledger.schemas.ledger import (
    AccountBalanceResponse,
    ArbitrageReportResponse,
    BalancesResponse,
    CashRegisterLineResponse,
    CashRegisterResponse,
    CommissionReportResponse,
    CurrentAccountsResponse,
    InventoryResponse,
    LenderBalanceResponse,
    LenderLedgerResponse,
    LenderSnapshotResponse,
    LenderSummaryResponse,
    LendersResponse,
    PendingMovementResponse,
    PendingResponse,
    ProviderBalanceResponse,
    SaleResponse,
    StockPositionResponse,
    WarningResponse,
)
from exchange_ledger.schemas.movements import (
    BalancesRequest,
    CashRegisterRequest,
    LendersRequest,
    MovementsRequest,
)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/ledger",
    tags=["Ledger"],
)


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _quantize(value: Decimal, quantum: Decimal) -> Decimal:
    # Widen precision so quantize never runs out of digits on large values
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() - quantum.as_tuple().exponent + 2)
        return value.quantize(quantum, rounding=ROUND_HALF_UP)


def _money(value: Decimal) -> Decimal:
    return _quantize(value, DISPLAY_QUANTUM)


def _unit(value: Decimal) -> Decimal:
    return _quantize(value, UNIT_COST_QUANTUM)


def _money_map(values: dict[str, Decimal]) -> dict[str, Decimal]:
    return {key: _money(amount) for key, amount in values.items()}


def _money_buckets(buckets: dict[str, dict[str, Decimal]]) -> dict[str, dict[str, Decimal]]:
    return {key: _money_map(inner) for key, inner in buckets.items()}


def _map_warning(warning: DerivationWarning) -> WarningResponse:
    return WarningResponse(
        code=warning.code,
        message=warning.message,
        movement_date=warning.movement_date,
        currency=warning.currency,
    )


def _map_balance(entry: AccountBalance) -> AccountBalanceResponse:
    return AccountBalanceResponse(
        account=entry.account.key,
        partner=entry.partner.value,
        medium=entry.medium.value,
        currency=entry.currency,
        initial=_money(entry.initial),
        inflow=_money(entry.inflow),
        outflow=_money(entry.outflow),
        balance=_money(entry.balance),
        movement_count=entry.movement_count,
    )


def _map_position(position: StockPosition) -> StockPositionResponse:
    return StockPositionResponse(
        currency=position.currency,
        quantity=position.quantity,
        total_cost=_money(position.total_cost),
        average_cost=_unit(position.average_cost),
        total_valuation=_money(position.total_valuation),
        associated_quote_currency=position.associated_quote_currency,
        realized_profit=_money_map(position.realized_profit),
    )


def _map_sale(sale: SaleResult) -> SaleResponse:
    return SaleResponse(
        date=sale.date,
        currency=sale.currency,
        quote_currency=sale.quote_currency,
        amount=sale.amount,
        total=_money(sale.total),
        unit_cost=_unit(sale.unit_cost),
        cost_of_sale=_money(sale.cost_of_sale),
        profit=_money(sale.profit),
        movement_id=sale.movement_id,
    )


def _map_snapshot(snapshot: LenderSnapshot) -> LenderSnapshotResponse:
    return LenderSnapshotResponse(
        date=snapshot.movement.date,
        sub_operation=snapshot.movement.sub_operation,
        currency=snapshot.currency,
        amount=_money(snapshot.movement.amount),
        interest_accrued=_money(snapshot.interest_accrued),
        principal_after=_money(snapshot.principal_after),
        interest_after=_money(snapshot.interest_after),
        net_balance_after=_money(snapshot.net_balance_after),
        due_date=snapshot.movement.due_date,
        movement_id=snapshot.movement.movement_id,
    )


def _lender_fields(ledger: LenderLedger) -> dict:
    return {
        "lender_id": ledger.lender.id,
        "name": ledger.lender.full_name,
        "balances": [
            LenderBalanceResponse(
                currency=balance.currency,
                principal=_money(balance.principal),
                accrued_interest=_money(balance.accrued_interest),
                net_balance=_money(balance.net_balance),
                effective_rate=_quantize(balance.effective_rate, RATE_QUANTUM),
                last_accrual_date=balance.last_accrual_date,
            )
            for balance in sorted(ledger.balances.values(), key=lambda b: b.currency)
        ],
        "total_lent": _money_map(ledger.total_lent),
        "total_withdrawn": _money_map(ledger.total_withdrawn),
        "movement_count": ledger.movement_count,
        "warnings": [_map_warning(w) for w in ledger.warnings],
    }


def _map_provider_balance(account: ProviderBalance) -> ProviderBalanceResponse:
    return ProviderBalanceResponse(
        provider=account.provider,
        currency=account.currency,
        inflow=_money(account.inflow),
        outflow=_money(account.outflow),
        balance=_money(account.balance),
        owed_by_provider=_money(account.owed_by_provider),
        owed_to_provider=_money(account.owed_to_provider),
        movement_count=account.movement_count,
    )


def _map_register_line(line: CashRegisterLine) -> CashRegisterLineResponse:
    return CashRegisterLineResponse(
        currency=line.currency,
        medium=line.medium.value,
        opening=_money(line.opening),
        inflow=_money(line.inflow),
        outflow=_money(line.outflow),
        expected=_money(line.expected),
        counted=_money(line.counted),
        difference=_money(line.difference),
        is_balanced=line.is_balanced,
    )


# =============================================================================
# BALANCES & INVENTORY
# =============================================================================

@router.post(
    "/balances",
    response_model=BalancesResponse,
    summary="Derive account balances",
)
@limiter.limit(RATE_LIMIT_LEDGER)
def get_balances(
        request: Request,  # Required for rate limiting
        body: BalancesRequest,
        partner: str | None = Query(default=None, description="partner1, partner2 or pooled"),
        medium: str | None = Query(default=None, description="cash or digital"),
        active_only: bool = Query(default=False, description="Hide keys that never saw any flow"),
        service: LedgerService = Depends(get_ledger_service),
) -> BalancesResponse:
    """
    Balances per (partner, medium, currency).

    Filters only select entries; they never change the computed figures.
    Raises **400** for an unknown partner or medium.
    """
    view = service.get_balances(
        body.to_movements(),
        initial_balances=body.initial_balances,
        partner=partner,
        medium=medium,
        active_only=active_only,
    )
    return BalancesResponse(
        balances=[_map_balance(entry) for entry in view.entries],
        totals=_money_map(view.totals),
        skipped_movements=view.skipped_movements,
    )


@router.post(
    "/inventory",
    response_model=InventoryResponse,
    summary="Derive WAC inventory and realized profit",
)
@limiter.limit(RATE_LIMIT_LEDGER)
def get_inventory(
        request: Request,  # Required for rate limiting
        body: MovementsRequest,
        interval: str = Query(default="monthly", description="Profit series bucket: daily or monthly"),
        service: LedgerService = Depends(get_ledger_service),
) -> InventoryResponse:
    """
    Weighted-average-cost stock per currency and realized profit.

    Raises **400** for an invalid interval.
    """
    if interval not in PROFIT_INTERVALS:
        raise InvalidIntervalError(interval)

    result = service.get_inventory(body.to_movements())
    series = result.profit_series(interval)

    return InventoryResponse(
        positions=[_map_position(p) for _, p in sorted(result.positions.items())],
        sales=[_map_sale(s) for s in result.sales],
        realized_profit_totals=_money_map(result.realized_profit_totals()),
        interval=interval,
        profit_series=_money_buckets(series),
        warnings=[_map_warning(w) for w in result.warnings],
    )


# =============================================================================
# LENDERS
# =============================================================================

@router.post(
    "/lenders",
    response_model=LendersResponse,
    summary="Summarize every lender",
)
@limiter.limit(RATE_LIMIT_LEDGER)
def get_lenders(
        request: Request,  # Required for rate limiting
        body: LendersRequest,
        service: LedgerService = Depends(get_ledger_service),
) -> LendersResponse:
    now = body.now or datetime.now(timezone.utc)
    summaries = service.get_lender_summaries(body.to_movements(), body.to_clients(), now=now)
    return LendersResponse(
        as_of=now,
        lenders=[LenderSummaryResponse(**_lender_fields(ledger)) for ledger in summaries.values()],
    )


@router.post(
    "/lenders/{lender_id}",
    response_model=LenderLedgerResponse,
    summary="Ledger of one lender",
)
@limiter.limit(RATE_LIMIT_LEDGER)
def get_lender(
        request: Request,  # Required for rate limiting
        lender_id: str,
        body: LendersRequest,
        service: LedgerService = Depends(get_ledger_service),
) -> LenderLedgerResponse:
    """
    Principal, interest and movement history (newest first) for one lender.

    Raises **404** if the id is not among the supplied lenders.
    """
    ledger = service.get_lender_ledger(
        body.to_movements(),
        body.to_clients(),
        lender_id=lender_id,
        now=body.now,
    )
    return LenderLedgerResponse(
        **_lender_fields(ledger),
        as_of=ledger.as_of,
        history=[_map_snapshot(s) for s in ledger.history],
    )


# =============================================================================
# REPORTS
# =============================================================================

@router.post(
    "/commissions",
    response_model=CommissionReportResponse,
    summary="Commission report",
)
@limiter.limit(RATE_LIMIT_LEDGER)
def get_commissions(
        request: Request,  # Required for rate limiting
        body: MovementsRequest,
        service: LedgerService = Depends(get_ledger_service),
) -> CommissionReportResponse:
    report = service.get_commissions(body.to_movements())
    return CommissionReportResponse(
        totals=_money_map(report.totals),
        monthly=_money_buckets(report.monthly),
        daily=_money_buckets(report.daily),
        by_provider=_money_buckets(report.by_provider),
        current_account_totals=_money_map(report.current_account_totals),
        movement_count=report.movement_count,
    )


@router.post(
    "/arbitrage",
    response_model=ArbitrageReportResponse,
    summary="Arbitrage profit report",
)
@limiter.limit(RATE_LIMIT_LEDGER)
def get_arbitrage(
        request: Request,  # Required for rate limiting
        body: MovementsRequest,
        service: LedgerService = Depends(get_ledger_service),
) -> ArbitrageReportResponse:
    report = service.get_arbitrage(body.to_movements())
    return ArbitrageReportResponse(
        totals=_money_map(report.totals),
        monthly=_money_buckets(report.monthly),
        by_client=_money_buckets(report.by_client),
        operation_count=report.operation_count,
        profitable_count=report.profitable_count,
    )


@router.post(
    "/current-accounts",
    response_model=CurrentAccountsResponse,
    summary="Provider current accounts",
)
@limiter.limit(RATE_LIMIT_LEDGER)
def get_current_accounts(
        request: Request,  # Required for rate limiting
        body: MovementsRequest,
        service: LedgerService = Depends(get_ledger_service),
) -> CurrentAccountsResponse:
    report = service.get_current_accounts(body.to_movements())
    return CurrentAccountsResponse(
        accounts=[_map_provider_balance(a) for a in report.accounts],
        provider_totals=_money_buckets(report.provider_totals()),
    )


@router.post(
    "/cash-register",
    response_model=CashRegisterResponse,
    summary="Daily cash close",
)
@limiter.limit(RATE_LIMIT_LEDGER)
def get_cash_register(
        request: Request,  # Required for rate limiting
        body: CashRegisterRequest,
        on: date = Query(..., alias="date", description="Day to close"),
        service: LedgerService = Depends(get_ledger_service),
) -> CashRegisterResponse:
    register = service.get_cash_register(
        body.to_movements(),
        on,
        counted=body.counted,
        opening=body.opening,
    )
    return CashRegisterResponse(
        date=register.date,
        lines=[_map_register_line(line) for line in register.lines],
        is_balanced=register.is_balanced,
    )


@router.post(
    "/pending",
    response_model=PendingResponse,
    summary="Movements pending withdrawal or delivery",
)
@limiter.limit(RATE_LIMIT_LEDGER)
def get_pending(
        request: Request,  # Required for rate limiting
        body: MovementsRequest,
        status: str | None = Query(
            default=None,
            description="pending_withdrawal or pending_delivery (default: both)"
        ),
        service: LedgerService = Depends(get_ledger_service),
) -> PendingResponse:
    """Pending movements, newest first. Raises **400** for an unknown status."""
    pending = service.get_pending(body.to_movements(), status=status)
    return PendingResponse(
        movements=[
            PendingMovementResponse(
                id=m.movement_id,
                date=m.date,
                operation=m.operation.value,
                sub_operation=m.sub_operation,
                amount=_money(m.amount),
                currency=m.currency,
                client_name=m.client_name,
                status=m.status,
            )
            for m in pending
        ],
        count=len(pending),
    )
