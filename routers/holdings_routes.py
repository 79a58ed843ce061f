# routers/holdings_routes.py
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from schemas.general import ok
from schemas.holding import HoldingCreate, HoldingUpdate
from services.errors import InternalFailure, NotFoundError
from services.portfolio_service import PortfolioService

router = APIRouter(tags=["portfolio"])


def get_portfolio_service(request: Request) -> PortfolioService:
    service = getattr(request.app.state, "portfolio", None)
    if service is None:
        raise InternalFailure("Portfolio service is not initialised")
    return service


@router.get("")
def list_holdings(service: PortfolioService = Depends(get_portfolio_service)):
    items = service.list_holdings()
    return ok(items, count=len(items))


@router.get("/search/{query}")
def search_holdings(query: str, service: PortfolioService = Depends(get_portfolio_service)):
    results = service.search_holdings(query)
    return ok(results, count=len(results), query=query)


@router.get("/{holding_id}")
def get_holding(holding_id: UUID, service: PortfolioService = Depends(get_portfolio_service)):
    return ok(service.get_holding(str(holding_id)))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_holding(
    holding: HoldingCreate,
    service: PortfolioService = Depends(get_portfolio_service),
):
    created = service.add_holding(holding)
    return ok(created, message="Portfolio item created successfully")


@router.put("/{holding_id}")
def replace_holding(
    holding_id: UUID,
    holding: HoldingCreate,
    service: PortfolioService = Depends(get_portfolio_service),
):
    updated = service.update_holding(str(holding_id), holding, partial=False)
    return ok(updated, message="Portfolio item updated successfully")


@router.patch("/{holding_id}")
def patch_holding(
    holding_id: UUID,
    changes: HoldingUpdate,
    service: PortfolioService = Depends(get_portfolio_service),
):
    updated = service.update_holding(str(holding_id), changes, partial=True)
    return ok(updated, message="Portfolio item updated successfully")


@router.delete("/{holding_id}")
def delete_holding(holding_id: UUID, service: PortfolioService = Depends(get_portfolio_service)):
    if not service.delete_holding(str(holding_id)):
        raise NotFoundError("Portfolio item", str(holding_id))
    return {"success": True, "message": "Portfolio item deleted successfully"}
