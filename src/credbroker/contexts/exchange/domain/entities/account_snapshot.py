from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Sequence

_QUOTE_ASSET = "USDT"
_CRITICAL_MARGIN_RATIO = Decimal("80")
_CENT = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class BalanceSummary:
    total: str
    available: str
    cross_wallet: str


@dataclass(frozen=True, slots=True)
class PnlSummary:
    today: str
    today_percent: str
    unrealized: str


@dataclass(frozen=True, slots=True)
class PositionView:
    symbol: str
    amount: str
    entry_price: str
    mark_price: str
    unrealized_profit: str
    liquidation_price: str
    leverage: str
    margin_ratio: str


@dataclass(frozen=True, slots=True)
class RiskSummary:
    has_critical: bool
    critical_count: int
    critical_symbols: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    """
    AccountSnapshot — aggregated futures account view rendered by the dashboard.

    Amounts are kept as decimal strings exactly as the exchange reports them; derived
    PnL figures are rounded half-up to two decimals.

    Related:
      - src/credbroker/contexts/exchange/application/use_cases/load_account_snapshot.py
      - apps/api/routes/exchange.py
    """

    balance: BalanceSummary
    pnl: PnlSummary
    positions: tuple[PositionView, ...]
    risk: RiskSummary

    def to_payload(self) -> dict[str, Any]:
        """
        Build JSON-serializable payload used for caching and API responses.

        Args:
            None.
        Returns:
            dict[str, Any]: Snapshot payload with camelCase keys.
        Assumptions:
            `from_payload(to_payload())` reproduces the same snapshot.
        Raises:
            None.
        Side Effects:
            None.
        """
        return {
            "balance": {
                "total": self.balance.total,
                "available": self.balance.available,
                "crossWallet": self.balance.cross_wallet,
            },
            "pnl": {
                "today": self.pnl.today,
                "todayPercent": self.pnl.today_percent,
                "unrealized": self.pnl.unrealized,
            },
            "positions": [
                {
                    "symbol": item.symbol,
                    "amount": item.amount,
                    "entryPrice": item.entry_price,
                    "markPrice": item.mark_price,
                    "unrealizedProfit": item.unrealized_profit,
                    "liquidationPrice": item.liquidation_price,
                    "leverage": item.leverage,
                    "marginRatio": item.margin_ratio,
                }
                for item in self.positions
            ],
            "risk": {
                "hasCritical": self.risk.has_critical,
                "criticalCount": self.risk.critical_count,
                "positions": list(self.risk.critical_symbols),
            },
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> AccountSnapshot:
        """
        Rebuild snapshot from cached payload.

        Args:
            payload: Mapping produced by `to_payload`.
        Returns:
            AccountSnapshot: Snapshot value object.
        Assumptions:
            Payload shape was produced by this class.
        Raises:
            KeyError: If payload misses required sections.
        Side Effects:
            None.
        """
        balance = payload["balance"]
        pnl = payload["pnl"]
        risk = payload["risk"]
        return cls(
            balance=BalanceSummary(
                total=str(balance["total"]),
                available=str(balance["available"]),
                cross_wallet=str(balance["crossWallet"]),
            ),
            pnl=PnlSummary(
                today=str(pnl["today"]),
                today_percent=str(pnl["todayPercent"]),
                unrealized=str(pnl["unrealized"]),
            ),
            positions=tuple(
                PositionView(
                    symbol=str(item["symbol"]),
                    amount=str(item["amount"]),
                    entry_price=str(item["entryPrice"]),
                    mark_price=str(item["markPrice"]),
                    unrealized_profit=str(item["unrealizedProfit"]),
                    liquidation_price=str(item["liquidationPrice"]),
                    leverage=str(item["leverage"]),
                    margin_ratio=str(item["marginRatio"]),
                )
                for item in payload["positions"]
            ),
            risk=RiskSummary(
                has_critical=bool(risk["hasCritical"]),
                critical_count=int(risk["criticalCount"]),
                critical_symbols=tuple(str(symbol) for symbol in risk["positions"]),
            ),
        )


def aggregate_account_snapshot(
    *,
    balances: Sequence[Mapping[str, Any]],
    positions: Sequence[Mapping[str, Any]],
    income: Sequence[Mapping[str, Any]],
    initial_balance: Decimal | None = None,
) -> AccountSnapshot:
    """
    Aggregate raw balance, position-risk and income rows into one snapshot.

    Args:
        balances: Raw `/fapi/v2/balance` rows.
        positions: Raw `/fapi/v2/positionRisk` rows.
        income: Raw `/fapi/v1/income` rows for today's realized PnL.
        initial_balance: Optional user-configured reference balance for PnL percent.
    Returns:
        AccountSnapshot: Aggregated snapshot.
    Assumptions:
        Only the USDT balance row is reported; positions with zero amount are closed.
    Raises:
        None.
    Side Effects:
        None.
    """
    quote_row = next(
        (row for row in balances if row.get("asset") == _QUOTE_ASSET),
        None,
    )
    quote = quote_row if quote_row is not None else {}
    open_positions = [row for row in positions if to_decimal(row.get("positionAmt")) != 0]

    today_pnl = sum((to_decimal(row.get("income")) for row in income), Decimal("0"))
    unrealized_pnl = sum(
        (to_decimal(row.get("unRealizedProfit")) for row in open_positions),
        Decimal("0"),
    )
    reference_balance = (
        initial_balance
        if initial_balance is not None and initial_balance > 0
        else to_decimal(quote.get("availableBalance"))
    )
    today_percent = (
        today_pnl / reference_balance * 100 if reference_balance > 0 else Decimal("0")
    )
    critical = [
        row for row in open_positions
        if to_decimal(row.get("marginRatio")) > _CRITICAL_MARGIN_RATIO
    ]

    return AccountSnapshot(
        balance=BalanceSummary(
            total=str(quote.get("balance", "0")),
            available=str(quote.get("availableBalance", "0")),
            cross_wallet=str(quote.get("crossWalletBalance", "0")),
        ),
        pnl=PnlSummary(
            today=_format_cents(today_pnl),
            today_percent=_format_cents(today_percent),
            unrealized=_format_cents(unrealized_pnl),
        ),
        positions=tuple(_to_position_view(row=row) for row in open_positions),
        risk=RiskSummary(
            has_critical=bool(critical),
            critical_count=len(critical),
            critical_symbols=tuple(str(row.get("symbol", "")) for row in critical),
        ),
    )


def to_decimal(value: Any) -> Decimal:
    """
    Parse exchange numeric string into Decimal, treating missing or invalid values as zero.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")
    if not parsed.is_finite():
        return Decimal("0")
    return parsed


def _format_cents(value: Decimal) -> str:
    return str(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def _to_position_view(*, row: Mapping[str, Any]) -> PositionView:
    return PositionView(
        symbol=str(row.get("symbol", "")),
        amount=str(row.get("positionAmt", "0")),
        entry_price=str(row.get("entryPrice", "0")),
        mark_price=str(row.get("markPrice", "0")),
        unrealized_profit=str(row.get("unRealizedProfit", "0")),
        liquidation_price=str(row.get("liquidationPrice", "0")),
        leverage=str(row.get("leverage", "")),
        margin_ratio=str(row.get("marginRatio", "0")),
    )
