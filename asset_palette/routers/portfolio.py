from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, UploadFile, status
from typing import List, Optional

from asset_palette.core.config import settings
from asset_palette.core.dependencies import get_portfolio_session
from asset_palette.core.exceptions import HoldingNotFoundError, PortfolioNotFoundError
from asset_palette.core.logging_config import get_logger
from asset_palette.models.portfolio import Holding
from asset_palette.schemas.portfolio import (
    ErrorResponse,
    HoldingCreateRequest,
    HoldingUpdateRequest,
    NamedPortfolioResponse,
    PortfolioResponse,
    RenameRequest,
    SessionResponse,
)
from asset_palette.services.session_service import PortfolioSession, load_portfolios

logger = get_logger(__name__)

router = APIRouter(
    prefix="/portfolios",
    tags=["Portfolios"],
    responses={
        404: {"model": ErrorResponse, "description": "Not found"},
        422: {"model": ErrorResponse, "description": "Unreadable statement"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)


def _session_response(session: PortfolioSession) -> SessionResponse:
    return SessionResponse.from_portfolios(session.portfolios, session.combined())


def _get_portfolio(session: PortfolioSession, index: int):
    try:
        return session.get(index)
    except PortfolioNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


class _LimitedUpload:
    """Wraps an UploadFile so reads past MAX_UPLOAD_BYTES are refused."""

    def __init__(self, upload: UploadFile):
        self.upload = upload
        self.filename = upload.filename

    async def read(self) -> bytes:
        content = await self.upload.read(settings.MAX_UPLOAD_BYTES + 1)
        if len(content) > settings.MAX_UPLOAD_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"{self.filename}: file exceeds {settings.MAX_UPLOAD_BYTES} bytes",
            )
        return content


@router.post("/upload", response_model=SessionResponse)
async def upload_statements(
    files: List[UploadFile] = File(...),
    names: Optional[List[str]] = Form(None),
    session: PortfolioSession = Depends(get_portfolio_session),
):
    """
    Parse statement CSVs into named portfolios, replacing the current session.

    Files are processed in order and the first unreadable one aborts the
    upload (StatementError -> 422); the previous session is kept in that case.
    """
    portfolios = await load_portfolios([_LimitedUpload(f) for f in files], names)
    session.replace(portfolios)
    return _session_response(session)


@router.get("", response_model=SessionResponse)
async def get_portfolios(session: PortfolioSession = Depends(get_portfolio_session)):
    return _session_response(session)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def reset_portfolios(session: PortfolioSession = Depends(get_portfolio_session)):
    session.reset()


@router.get("/combined", response_model=PortfolioResponse)
async def get_combined_portfolio(session: PortfolioSession = Depends(get_portfolio_session)):
    return PortfolioResponse.from_data(session.combined())


@router.get("/{index}", response_model=NamedPortfolioResponse)
async def get_portfolio(
    index: int = Path(..., ge=0),
    session: PortfolioSession = Depends(get_portfolio_session),
):
    return NamedPortfolioResponse.from_named(index, _get_portfolio(session, index))


@router.patch("/{index}", response_model=NamedPortfolioResponse)
async def rename_portfolio(
    request: RenameRequest,
    index: int = Path(..., ge=0),
    session: PortfolioSession = Depends(get_portfolio_session),
):
    _get_portfolio(session, index)
    return NamedPortfolioResponse.from_named(index, session.rename(index, request.name))


@router.post("/{index}/holdings", response_model=NamedPortfolioResponse, status_code=status.HTTP_201_CREATED)
async def add_holding(
    request: HoldingCreateRequest,
    index: int = Path(..., ge=0),
    session: PortfolioSession = Depends(get_portfolio_session),
):
    _get_portfolio(session, index)
    portfolio = session.add_holding(index, request.type, request.name, request.value, request.gain_loss)
    logger.info("Manual holding added", extra={"portfolio": index, "holding_name": request.name})
    return NamedPortfolioResponse.from_named(index, portfolio)


@router.put("/{index}/holdings/{holding_id}", response_model=NamedPortfolioResponse)
async def update_holding(
    request: HoldingUpdateRequest,
    holding_id: str,
    index: int = Path(..., ge=0),
    session: PortfolioSession = Depends(get_portfolio_session),
):
    current = next(
        (h for h in _get_portfolio(session, index).data.holdings if h.id == holding_id),
        None,
    )
    if current is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No holding found for id {holding_id}",
        )

    updated = Holding(
        id=holding_id,
        type=request.type,
        name=request.name,
        account=request.account or current.account,
        value=request.value,
        gain_loss=request.gain_loss,
    )
    return NamedPortfolioResponse.from_named(index, session.update_holding(index, updated))


@router.delete("/{index}/holdings/{holding_id}", response_model=NamedPortfolioResponse)
async def delete_holding(
    holding_id: str,
    index: int = Path(..., ge=0),
    session: PortfolioSession = Depends(get_portfolio_session),
):
    _get_portfolio(session, index)
    try:
        portfolio = session.delete_holding(index, holding_id)
    except HoldingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return NamedPortfolioResponse.from_named(index, portfolio)
