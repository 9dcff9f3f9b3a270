# estimator/api/materials.py
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from estimator.core.cancellation import CancelScope
from estimator.db.deps import get_cancel_scope, get_components
from estimator.services import Components
from estimator.services.validators import MAX_DIGITS, MONEY_PLACES

router = APIRouter(prefix="/materials", tags=["materials"])


class MaterialBase(BaseModel):
    name: str
    unit: str
    reference_price: Decimal = Field(Decimal("0"), ge=0, max_digits=MAX_DIGITS, decimal_places=MONEY_PLACES)


class MaterialCreate(MaterialBase):
    material_id: str


class MaterialUpdate(BaseModel):
    name: str
    unit: str
    reference_price: Decimal | None = Field(None, ge=0, max_digits=MAX_DIGITS, decimal_places=MONEY_PLACES)


class MaterialOut(MaterialBase):
    material_id: str

    class Config:
        from_attributes = True  # pydantic v2 (equiv. a orm_mode=True)


class SupplierPriceCreate(BaseModel):
    supplier_name: str
    price: Decimal = Field(..., ge=0, max_digits=MAX_DIGITS, decimal_places=MONEY_PLACES)
    observed_at: datetime | None = None


class SupplierPriceOut(BaseModel):
    id: int
    material_id: str
    supplier_name: str
    price: Decimal
    observed_at: datetime

    class Config:
        from_attributes = True


class PriceStatsOut(BaseModel):
    material_id: str
    estimated_price: Decimal
    avg_actual_price: Decimal | None
    actual_price: Decimal | None
    supplier_name: str | None
    observations: int


@router.get("/", response_model=List[MaterialOut])
def list_materials(
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.materials.list_materials(cancel=cancel)


@router.post("/", response_model=MaterialOut, status_code=201)
def create_material(
    material_in: MaterialCreate,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.materials.create_material(
        material_id=material_in.material_id,
        name=material_in.name,
        unit=material_in.unit,
        reference_price=material_in.reference_price,
        cancel=cancel,
    )


@router.get("/{material_id}", response_model=MaterialOut)
def get_material(
    material_id: str,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.materials.get_material(material_id, cancel=cancel)


@router.put("/{material_id}", response_model=MaterialOut)
def update_material(
    material_id: str,
    material_in: MaterialUpdate,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.materials.update_material(
        material_id,
        name=material_in.name,
        unit=material_in.unit,
        reference_price=material_in.reference_price,
        cancel=cancel,
    )


@router.delete("/{material_id}", status_code=204)
def delete_material(
    material_id: str,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    components.materials.delete_material(material_id, cancel=cancel)
    return Response(status_code=204)


# --------- Historial de precios de proveedor ---------


@router.post("/{material_id}/prices", response_model=SupplierPriceOut, status_code=201)
def record_supplier_price(
    material_id: str,
    data: SupplierPriceCreate,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.prices.record_price(
        material_id=material_id,
        supplier_name=data.supplier_name,
        price=data.price,
        observed_at=data.observed_at,
        cancel=cancel,
    )


@router.get("/{material_id}/prices", response_model=List[SupplierPriceOut])
def list_supplier_prices(
    material_id: str,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.prices.list_prices(material_id, cancel=cancel)


@router.get("/{material_id}/price-stats", response_model=PriceStatsOut)
def get_price_stats(
    material_id: str,
    window_days: int | None = Query(None, gt=0, description="Sólo observaciones de los últimos N días"),
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    window = timedelta(days=window_days) if window_days else None
    estimated, stats = components.boq.price_stats(material_id, window=window, cancel=cancel)
    return PriceStatsOut(
        material_id=material_id,
        estimated_price=estimated,
        avg_actual_price=stats.avg_actual_price,
        actual_price=stats.actual_price,
        supplier_name=stats.supplier_name,
        observations=stats.observations,
    )
