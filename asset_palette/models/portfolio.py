from dataclasses import dataclass, field

# Account label the brokerage never emits; marks holdings entered by hand.
MANUAL_ACCOUNT = "手入力"


@dataclass(frozen=True)
class Holding:
    id: str
    type: str
    name: str
    account: str
    value: int
    gain_loss: int

    @property
    def is_manual(self) -> bool:
        return self.account == MANUAL_ACCOUNT


@dataclass
class AggregatedHolding:
    """Holdings sharing one instrument name, with the per-account rows kept."""
    name: str
    type: str
    total_value: int = 0
    total_gain_loss: int = 0
    sub_holdings: list[Holding] = field(default_factory=list)


@dataclass
class BreakdownItem:
    name: str
    value: int

    def share(self, total: int) -> float:
        """Percentage of ``total`` this slice represents, 0.0 for an empty portfolio."""
        if total <= 0:
            return 0.0
        return self.value / total * 100


@dataclass
class PortfolioData:
    total_value: int
    total_gain_loss: int
    aggregated_holdings: list[AggregatedHolding]
    by_account: list[BreakdownItem]
    by_asset_class: list[BreakdownItem]
    by_holding: list[BreakdownItem]
    holdings: list[Holding]


@dataclass
class NamedPortfolioData:
    name: str
    data: PortfolioData
