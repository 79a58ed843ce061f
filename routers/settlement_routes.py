# routers/settlement_routes.py
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from middleware.rate_limit import TRADE_RATE_LIMIT, limiter
from routers.holdings_routes import get_portfolio_service
from schemas.general import ok
from schemas.settlement import TransactionCreate
from services.portfolio_service import PortfolioService

router = APIRouter(tags=["settlement"])


@router.get("")
def get_settlement(service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.settlement_state())


@router.get("/balance")
def get_balance(service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.balance())


@router.get("/summary")
def get_transaction_summary(service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.ledger_totals())


@router.get("/transactions")
def list_transactions(
    type: Optional[str] = Query(None),
    limit: Optional[int] = Query(None),
    service: PortfolioService = Depends(get_portfolio_service),
):
    items = service.transactions(type=type, limit=limit)
    return ok(items, count=len(items))


@router.get("/transactions/{transaction_id}")
def get_transaction(transaction_id: UUID, service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.transaction(str(transaction_id)))


@router.post("/transaction", status_code=status.HTTP_201_CREATED)
@limiter.limit(TRADE_RATE_LIMIT)
def post_transaction(
    request: Request,
    body: TransactionCreate,
    service: PortfolioService = Depends(get_portfolio_service),
):
    transaction = service.post_transaction(body)
    return ok(transaction, message="Transaction completed successfully")
