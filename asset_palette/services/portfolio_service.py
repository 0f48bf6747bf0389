import uuid
from typing import Iterable, Sequence

from asset_palette.core.exceptions import HoldingNotFoundError
from asset_palette.models.portfolio import (
    MANUAL_ACCOUNT,
    AggregatedHolding,
    BreakdownItem,
    Holding,
    NamedPortfolioData,
    PortfolioData,
)

# Display order of asset classes in the holdings list; unknown classes sit
# between the listed ones and cash/crypto.
ASSET_TYPE_ORDER = {
    "国内株式": 1,
    "米国株式": 2,
    "中国株式": 3,
    "アセアン株式": 4,
    "投資信託": 5,
    "金・プラチナ": 6,
    "国内債券": 7,
    "外国債券": 8,
    "現金": 98,
    "仮想通貨": 99,
}
DEFAULT_TYPE_ORDER = 90

MAX_PIE_SLICES = 10
OTHER_LABEL = "その他"


def asset_type_rank(asset_type: str) -> int:
    return ASSET_TYPE_ORDER.get(asset_type, DEFAULT_TYPE_ORDER)


def aggregate_holdings(holdings: Iterable[Holding]) -> list[AggregatedHolding]:
    """Group holdings by name, ordered by asset type rank then total value (largest first)."""
    groups: dict[str, AggregatedHolding] = {}
    for holding in holdings:
        group = groups.get(holding.name)
        if group is None:
            group = groups[holding.name] = AggregatedHolding(name=holding.name, type=holding.type)
        group.total_value += holding.value
        group.total_gain_loss += holding.gain_loss
        group.sub_holdings.append(holding)

    # sorted() is stable, so equal keys keep first-seen order
    return sorted(
        groups.values(),
        key=lambda g: (asset_type_rank(g.type), -g.total_value),
    )


def collapse_long_tail(items: list[BreakdownItem]) -> list[BreakdownItem]:
    """Keep the first MAX_PIE_SLICES - 1 slices and sum the rest into one "other" slice."""
    if len(items) <= MAX_PIE_SLICES:
        return list(items)

    head = items[:MAX_PIE_SLICES - 1]
    tail = items[MAX_PIE_SLICES - 1:]
    return head + [BreakdownItem(name=OTHER_LABEL, value=sum(item.value for item in tail))]


def _breakdown(pairs: Iterable[tuple[str, int]]) -> list[BreakdownItem]:
    """Sum values per key, largest first; ties keep the order keys were first seen."""
    totals: dict[str, int] = {}
    for key, value in pairs:
        totals[key] = totals.get(key, 0) + value

    items = [BreakdownItem(name=name, value=value) for name, value in totals.items()]
    return sorted(items, key=lambda item: -item.value)


def calculate_allocation(holdings: Sequence[Holding]) -> list[BreakdownItem]:
    """Value per asset class."""
    return _breakdown((h.type, h.value) for h in holdings)


def calculate_account_allocation(holdings: Sequence[Holding]) -> list[BreakdownItem]:
    """Value per account; manually entered holdings are counted under their asset class."""
    return _breakdown(
        (h.type if h.account == MANUAL_ACCOUNT else h.account, h.value)
        for h in holdings
    )


def calculate_portfolio_data(holdings: Sequence[Holding]) -> PortfolioData:
    """
    Build the full portfolio snapshot from raw holdings.

    Pure and total: the same input always yields an equal snapshot, and an
    empty input yields zero totals with empty breakdowns.
    """
    holdings = list(holdings)
    aggregated = aggregate_holdings(holdings)

    return PortfolioData(
        total_value=sum(h.value for h in holdings),
        total_gain_loss=sum(h.gain_loss for h in holdings),
        aggregated_holdings=aggregated,
        by_account=calculate_account_allocation(holdings),
        by_asset_class=calculate_allocation(holdings),
        by_holding=collapse_long_tail(
            [BreakdownItem(name=g.name, value=g.total_value) for g in aggregated]
        ),
        holdings=holdings,
    )


def combine_portfolios(portfolios: Sequence[NamedPortfolioData]) -> PortfolioData:
    """Re-aggregate every portfolio's holdings, in listing order, as one portfolio."""
    return calculate_portfolio_data(
        [holding for portfolio in portfolios for holding in portfolio.data.holdings]
    )


def add_manual_holding(
    portfolio: NamedPortfolioData,
    asset_type: str,
    name: str,
    value: int,
    gain_loss: int,
) -> NamedPortfolioData:
    holding = Holding(
        id=f"manual_{uuid.uuid4().hex}",
        type=asset_type,
        name=name,
        account=MANUAL_ACCOUNT,
        value=value,
        gain_loss=gain_loss,
    )
    return NamedPortfolioData(
        name=portfolio.name,
        data=calculate_portfolio_data(portfolio.data.holdings + [holding]),
    )


def update_holding(portfolio: NamedPortfolioData, updated: Holding) -> NamedPortfolioData:
    """Replace the holding with the same id and recompute the snapshot."""
    holdings = portfolio.data.holdings
    index = next((i for i, h in enumerate(holdings) if h.id == updated.id), None)
    if index is None:
        raise HoldingNotFoundError(f"No holding found for id {updated.id}")

    holdings = holdings[:index] + [updated] + holdings[index + 1:]
    return NamedPortfolioData(name=portfolio.name, data=calculate_portfolio_data(holdings))


def delete_holding(portfolio: NamedPortfolioData, holding_id: str) -> NamedPortfolioData:
    holdings = [h for h in portfolio.data.holdings if h.id != holding_id]
    if len(holdings) == len(portfolio.data.holdings):
        raise HoldingNotFoundError(f"No holding found for id {holding_id}")

    return NamedPortfolioData(name=portfolio.name, data=calculate_portfolio_data(holdings))
