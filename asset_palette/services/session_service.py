"""
Statement loading and the set of named portfolios a user is working on.

Nothing here is persisted: a session lives as long as the process (or the
caller holding it) and is rebuilt from uploaded statements.
"""

from typing import Optional, Protocol, Sequence

from asset_palette.core.exceptions import (
    EmptyStatementError,
    FormatError,
    PortfolioNotFoundError,
    StatementError,
)
from asset_palette.core.logging_config import get_logger
from asset_palette.models.portfolio import Holding, NamedPortfolioData, PortfolioData
from asset_palette.services import portfolio_service
from asset_palette.services.csv_service import parse_statement

logger = get_logger(__name__)

DEFAULT_NAME_TEMPLATE = "ポートフォリオ {}"


class StatementUpload(Protocol):
    """Anything with a file name and an async ``read()``, e.g. FastAPI's UploadFile."""
    filename: Optional[str]

    async def read(self) -> bytes: ...


def default_portfolio_name(position: int) -> str:
    return DEFAULT_NAME_TEMPLATE.format(position + 1)


async def load_portfolios(
    uploads: Sequence[StatementUpload],
    names: Optional[Sequence[str]] = None,
) -> list[NamedPortfolioData]:
    """
    Parse statements one after another into named portfolios.

    Stops at the first file that fails; files after it are not read.

    Args:
        uploads: Statement files in display order.
        names: Labels by position; missing or blank ones get a default.

    Raises:
        StatementError: wrapping the FormatError/DecodeFailure/EmptyStatementError
            of the first failing file, with that file's name.
    """
    names = list(names or [])
    portfolios = []

    for position, upload in enumerate(uploads):
        filename = upload.filename or f"file{position + 1}"
        try:
            if not filename.lower().endswith(".csv"):
                raise FormatError("File must be a CSV")

            holdings = parse_statement(await upload.read(), filename)
            if not holdings:
                raise EmptyStatementError(f"No holdings could be read from '{filename}'")
        except (FormatError, EmptyStatementError) as e:
            logger.warning("Statement rejected", extra={"source": filename, "reason": str(e)})
            raise StatementError(filename, e) from e

        label = names[position].strip() if position < len(names) else ""
        portfolios.append(NamedPortfolioData(
            name=label or default_portfolio_name(position),
            data=portfolio_service.calculate_portfolio_data(holdings),
        ))

    logger.info("Portfolios loaded", extra={"count": len(portfolios)})
    return portfolios


class PortfolioSession:
    """
    Ordered named portfolios plus the combined view derived from them.

    Every change replaces a portfolio's snapshot with a fully recomputed one;
    the combined view is rebuilt on each read and cannot be edited.
    """

    def __init__(self, portfolios: Optional[Sequence[NamedPortfolioData]] = None):
        self._portfolios = list(portfolios or [])

    @property
    def portfolios(self) -> list[NamedPortfolioData]:
        return list(self._portfolios)

    def replace(self, portfolios: Sequence[NamedPortfolioData]) -> None:
        self._portfolios = list(portfolios)

    def reset(self) -> None:
        self._portfolios = []

    def get(self, index: int) -> NamedPortfolioData:
        if not 0 <= index < len(self._portfolios):
            raise PortfolioNotFoundError(f"Portfolio {index} not found")
        return self._portfolios[index]

    def combined(self) -> PortfolioData:
        return portfolio_service.combine_portfolios(self._portfolios)

    def rename(self, index: int, name: str) -> NamedPortfolioData:
        current = self.get(index)
        self._portfolios[index] = NamedPortfolioData(name=name, data=current.data)
        return self._portfolios[index]

    def add_holding(self, index: int, asset_type: str, name: str, value: int, gain_loss: int) -> NamedPortfolioData:
        self._portfolios[index] = portfolio_service.add_manual_holding(
            self.get(index), asset_type, name, value, gain_loss
        )
        return self._portfolios[index]

    def update_holding(self, index: int, holding: Holding) -> NamedPortfolioData:
        self._portfolios[index] = portfolio_service.update_holding(self.get(index), holding)
        return self._portfolios[index]

    def delete_holding(self, index: int, holding_id: str) -> NamedPortfolioData:
        self._portfolios[index] = portfolio_service.delete_holding(self.get(index), holding_id)
        return self._portfolios[index]
