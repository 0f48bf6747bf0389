from pydantic import BaseModel, Field
from typing import List, Optional

from asset_palette.models.portfolio import (
    AggregatedHolding,
    BreakdownItem,
    Holding,
    NamedPortfolioData,
    PortfolioData,
)


class ErrorResponse(BaseModel):
    """Standard error response"""
    detail: str
    error_code: Optional[str] = None
    filename: Optional[str] = None


class HoldingResponse(BaseModel):
    id: str
    type: str
    name: str
    account: str
    value: int
    gain_loss: int
    is_manual: bool

    @classmethod
    def from_holding(cls, holding: Holding) -> "HoldingResponse":
        return cls(
            id=holding.id,
            type=holding.type,
            name=holding.name,
            account=holding.account,
            value=holding.value,
            gain_loss=holding.gain_loss,
            is_manual=holding.is_manual,
        )


class AggregatedHoldingResponse(BaseModel):
    name: str
    type: str
    total_value: int
    total_gain_loss: int
    sub_holdings: List[HoldingResponse]

    @classmethod
    def from_aggregate(cls, group: AggregatedHolding) -> "AggregatedHoldingResponse":
        return cls(
            name=group.name,
            type=group.type,
            total_value=group.total_value,
            total_gain_loss=group.total_gain_loss,
            sub_holdings=[HoldingResponse.from_holding(h) for h in group.sub_holdings],
        )


class BreakdownResponse(BaseModel):
    name: str
    value: int
    share: float = Field(..., description="Percentage of the portfolio total")

    @classmethod
    def from_item(cls, item: BreakdownItem, total: int) -> "BreakdownResponse":
        return cls(name=item.name, value=item.value, share=round(item.share(total), 2))


class PortfolioResponse(BaseModel):
    total_value: int
    total_gain_loss: int
    aggregated_holdings: List[AggregatedHoldingResponse]
    by_account: List[BreakdownResponse]
    by_asset_class: List[BreakdownResponse]
    by_holding: List[BreakdownResponse]
    holdings: List[HoldingResponse]

    @classmethod
    def from_data(cls, data: PortfolioData) -> "PortfolioResponse":
        total = data.total_value
        return cls(
            total_value=total,
            total_gain_loss=data.total_gain_loss,
            aggregated_holdings=[AggregatedHoldingResponse.from_aggregate(g) for g in data.aggregated_holdings],
            by_account=[BreakdownResponse.from_item(i, total) for i in data.by_account],
            by_asset_class=[BreakdownResponse.from_item(i, total) for i in data.by_asset_class],
            by_holding=[BreakdownResponse.from_item(i, total) for i in data.by_holding],
            holdings=[HoldingResponse.from_holding(h) for h in data.holdings],
        )


class NamedPortfolioResponse(BaseModel):
    index: int
    name: str
    data: PortfolioResponse

    @classmethod
    def from_named(cls, index: int, portfolio: NamedPortfolioData) -> "NamedPortfolioResponse":
        return cls(index=index, name=portfolio.name, data=PortfolioResponse.from_data(portfolio.data))


class SessionResponse(BaseModel):
    portfolios: List[NamedPortfolioResponse]
    combined: PortfolioResponse

    @classmethod
    def from_portfolios(cls, portfolios: List[NamedPortfolioData], combined: PortfolioData) -> "SessionResponse":
        return cls(
            portfolios=[NamedPortfolioResponse.from_named(i, p) for i, p in enumerate(portfolios)],
            combined=PortfolioResponse.from_data(combined),
        )


class HoldingCreateRequest(BaseModel):
    type: str = Field(..., min_length=1, description="Asset class, e.g. 投資信託")
    name: str = Field(..., min_length=1)
    value: int
    gain_loss: int = 0


class HoldingUpdateRequest(HoldingCreateRequest):
    account: Optional[str] = Field(None, min_length=1, description="Defaults to the holding's current account")


class RenameRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
