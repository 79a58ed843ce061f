# routers/portfolio_routes.py
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from middleware.rate_limit import TRADE_RATE_LIMIT, limiter
from routers.holdings_routes import get_portfolio_service
from schemas.general import ok
from schemas.holding import HoldingCreate, SellRequest
from services.portfolio_service import PortfolioService

router = APIRouter(tags=["portfolio"])


@router.get("/summary/stats")
def portfolio_summary(service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.summary())


@router.post("/buy", status_code=status.HTTP_201_CREATED)
@limiter.limit(TRADE_RATE_LIMIT)
def buy_holding(
    request: Request,
    holding: HoldingCreate,
    service: PortfolioService = Depends(get_portfolio_service),
):
    result = service.buy(holding)
    return ok(
        result,
        message=f"Asset added to portfolio. ${result['cost']:,.2f} deducted from settlement account.",
    )


@router.post("/{holding_id}/sell")
@limiter.limit(TRADE_RATE_LIMIT)
def sell_holding(
    request: Request,
    holding_id: UUID,
    body: SellRequest,
    service: PortfolioService = Depends(get_portfolio_service),
):
    result = service.sell(str(holding_id), body.quantity)
    return ok(
        result,
        message=f"${result['proceeds']:,.2f} added to settlement account.",
    )
