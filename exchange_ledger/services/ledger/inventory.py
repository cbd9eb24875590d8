# exchange_ledger/services/ledger/inventory.py
"""
Weighted-average-cost (WAC) inventory engine.

Replays TRANSACTIONS/BUY and TRANSACTIONS/SELL movements in chronological
order (stable: same-day movements keep collection order) and maintains one
StockPosition per currency. Arbitrage is not part of the inventory.

BUY:
    total_cost += total
    quantity   += amount
    the buy's quote currency becomes the position's associated quote currency

SELL:
    unit_cost    = average cost before the sale
    cost_of_sale = amount × unit_cost
    profit       = total - cost_of_sale   (banked under the sale's quote currency)
    quantity    -= amount
    total_cost  -= cost_of_sale
    quantity <= 0 resets quantity and total_cost to exactly 0

Overselling is allowed (the stock is not tracked negative) but produces an
INSUFFICIENT_STOCK warning.

Usage:
    engine = InventoryEngine()
    result = engine.calculate(movements)
    result.positions["USD"].average_cost
    result.profit_series("monthly")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from exchange_ledger.config import settings
from exchange_ledger.models import Movement, Operation, SubOperation
from exchange_ledger.services.ledger.types import (
    DerivationWarning,
    InventoryResult,
    SaleResult,
    StockPosition,
    WarningCode,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

TRADE_SUB_OPERATIONS = (SubOperation.BUY.value, SubOperation.SELL.value)


class InventoryEngine:
    """
    Computes WAC stock positions and realized profit.

    Args:
        default_profit_currency: Quote currency used for sales that carry none
    """

    def __init__(self, default_profit_currency: str | None = None) -> None:
        self.default_profit_currency = (
            default_profit_currency or settings.ledger_default_profit_currency
        )

    def calculate(self, movements: Iterable[Movement]) -> InventoryResult:
        """
        Replay buys and sells into positions.

        Args:
            movements: Movement collection in insertion order

        Returns:
            InventoryResult with positions, per-sale results and warnings
        """
        result = InventoryResult()

        trades = [
            m for m in movements
            if m.operation == Operation.TRANSACTIONS and m.sub_operation in TRADE_SUB_OPERATIONS
        ]
        # sorted() is stable, ties keep collection order
        trades.sort(key=lambda m: m.date)

        for movement in trades:
            if not movement.currency:
                logger.debug(f"Skipping {movement.sub_operation} on {movement.date}: missing currency")
                continue

            position = result.positions.get(movement.currency)
            if position is None:
                position = StockPosition(currency=movement.currency)
                result.positions[movement.currency] = position

            if movement.sub_operation == SubOperation.BUY.value:
                self._apply_buy(position, movement)
            else:
                self._apply_sell(position, movement, result)

        logger.debug(
            f"Inventory derived: {len(trades)} trades, {len(result.positions)} currencies, "
            f"{len(result.warnings)} warnings"
        )
        return result

    def _apply_buy(self, position: StockPosition, movement: Movement) -> None:
        position.total_cost += movement.total
        position.quantity += movement.amount
        if movement.quote_currency:
            position.associated_quote_currency = movement.quote_currency

    def _apply_sell(
            self,
            position: StockPosition,
            movement: Movement,
            result: InventoryResult,
    ) -> None:
        quote_currency = movement.quote_currency or self.default_profit_currency

        if movement.amount > position.quantity:
            warning = DerivationWarning(
                code=WarningCode.INSUFFICIENT_STOCK,
                message=(
                    f"Sold {movement.amount} {position.currency} with only "
                    f"{position.quantity} in stock"
                ),
                movement_date=movement.date,
                currency=position.currency,
            )
            result.warnings.append(warning)
            logger.warning(f"{warning.code} on {movement.date}: {warning.message}")

        unit_cost = position.average_cost
        cost_of_sale = movement.amount * unit_cost
        profit = movement.total - cost_of_sale

        if profit != ZERO:
            position.realized_profit[quote_currency] = (
                position.realized_profit.get(quote_currency, ZERO) + profit
            )

        position.quantity -= movement.amount
        position.total_cost -= cost_of_sale
        if position.quantity <= ZERO:
            position.quantity = ZERO
            position.total_cost = ZERO

        result.sales.append(
            SaleResult(
                date=movement.date,
                currency=position.currency,
                quote_currency=quote_currency,
                amount=movement.amount,
                total=movement.total,
                unit_cost=unit_cost,
                cost_of_sale=cost_of_sale,
                profit=profit,
                movement_id=movement.movement_id,
            )
        )
