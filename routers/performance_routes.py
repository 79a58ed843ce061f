# routers/performance_routes.py
from fastapi import APIRouter, Depends

from routers.holdings_routes import get_portfolio_service
from schemas.general import ok
from services.portfolio_service import PortfolioService

router = APIRouter(tags=["performance"])


@router.get("/dashboard")
def performance_dashboard(service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.dashboard())


@router.get("/historical")
def historical_performance(service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.historical())


@router.get("/sectors")
def sector_allocation(service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.sector_allocation())


@router.get("/types")
def type_allocation(service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.type_allocation())


@router.get("/risk")
def risk_metrics(service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.risk_metrics())


@router.get("/income")
def income(service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.income())
