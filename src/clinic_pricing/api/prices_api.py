"""
Prices API - FastAPI router for price resolution and price management.
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..engine import PriceEngine
from ..errors import MalformedInput
from .state import get_engine

router = APIRouter(prefix="/prices", tags=["prices"])


# Pydantic models for API
class ResolveRequest(BaseModel):
    """Request model for a single price lookup."""
    scope_id: str
    code: str
    service_date: Optional[str] = None


class ResolveBatchRequest(BaseModel):
    """Request model for a bulk lookup, e.g. during an import."""
    scope_id: str
    codes: list[str]
    service_date: Optional[str] = None


class ClinicPriceUpdate(BaseModel):
    scope_id: str
    code: str
    price: Decimal
    effective_from: Optional[str] = None


class DefaultPriceUpdate(BaseModel):
    code: str
    price: Decimal
    effective_from: Optional[str] = None


class DefaultPriceRow(BaseModel):
    code: str
    price: Decimal


class DefaultPriceImport(BaseModel):
    rows: list[DefaultPriceRow] = Field(default_factory=list)
    effective_from: Optional[str] = None


# Endpoints

@router.post("/resolve")
async def resolve_price(req: ResolveRequest, engine: PriceEngine = Depends(get_engine)):
    """Resolve the price of one code for a clinic."""
    try:
        result = await engine.resolve(req.scope_id, req.code, req.service_date)
    except MalformedInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result.to_dict()


@router.post("/resolve-batch")
async def resolve_batch(req: ResolveBatchRequest, engine: PriceEngine = Depends(get_engine)):
    """Resolve many codes for a clinic."""
    try:
        results = await engine.resolve_batch(req.scope_id, req.codes, req.service_date)
    except MalformedInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {code: result.to_dict() for code, result in results.items()}


@router.put("/clinic")
async def set_clinic_price(update: ClinicPriceUpdate, engine: PriceEngine = Depends(get_engine)):
    """Set a clinic override price."""
    try:
        success = await engine.set_clinic_price(
            update.scope_id, update.code, update.price, update.effective_from
        )
    except MalformedInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not success:
        raise HTTPException(status_code=409, detail="Price store rejected the change; price not updated")
    return {"success": True}


@router.put("/default")
async def set_default_price(update: DefaultPriceUpdate, engine: PriceEngine = Depends(get_engine)):
    """Set the organization default price for a code."""
    try:
        success = await engine.set_organization_default_price(
            update.code, update.price, update.effective_from
        )
    except MalformedInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not success:
        raise HTTPException(status_code=409, detail="Price store rejected the change; price not updated")
    return {"success": True}


@router.post("/default/import")
async def import_default_prices(payload: DefaultPriceImport, engine: PriceEngine = Depends(get_engine)):
    """Import a default price schedule."""
    try:
        summary = await engine.import_default_prices(
            [(row.code, row.price) for row in payload.rows],
            payload.effective_from,
        )
    except MalformedInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return summary.to_dict()
