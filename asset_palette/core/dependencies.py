from fastapi import Request

from asset_palette.services.session_service import PortfolioSession


async def get_portfolio_session(request: Request) -> PortfolioSession:
    """
    Dependency returning the application's portfolio session.

    One session per process; created by the app factory and kept on app.state.
    """
    return request.app.state.portfolio_session
