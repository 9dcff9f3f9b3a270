# estimator/api/jobs.py
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from estimator.core.cancellation import CancelScope
from estimator.db.deps import get_cancel_scope, get_components
from estimator.services import Components
from estimator.services.ledger_service import JobMaterialItem
from estimator.services.validators import MAX_DIGITS, QUANTITY_PLACES

router = APIRouter(prefix="/jobs", tags=["jobs"])


class JobBase(BaseModel):
    name: str
    description: str | None = None
    unit: str


class JobCreate(JobBase):
    pass


class JobUpdate(JobBase):
    pass


class JobOut(JobBase):
    id: int

    class Config:
        from_attributes = True


class JobMaterialItemIn(BaseModel):
    material_id: str
    quantity: Decimal = Field(..., gt=0, max_digits=MAX_DIGITS, decimal_places=QUANTITY_PLACES)


class AddJobMaterialRequest(BaseModel):
    materials: List[JobMaterialItemIn] = Field(..., min_length=1)


class UpdateJobMaterialQuantityRequest(BaseModel):
    job_id: int
    material_id: str
    quantity: Decimal = Field(..., gt=0, max_digits=MAX_DIGITS, decimal_places=QUANTITY_PLACES)


class DeleteJobMaterialRequest(BaseModel):
    job_id: int
    material_id: str


class JobMaterialOut(BaseModel):
    material_id: str
    name: str
    unit: str
    quantity: Decimal

    class Config:
        from_attributes = True


# --------- Ledger trabajo-material ---------
# Declaradas antes de "/{job_id}" para que "/materials" no se lea como id.


@router.put("/materials/quantity", status_code=204)
def update_job_material_quantity(
    data: UpdateJobMaterialQuantityRequest,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    components.ledger.update_quantity(data.job_id, data.material_id, data.quantity, cancel=cancel)
    return Response(status_code=204)


@router.delete("/materials", status_code=204)
def delete_job_material(
    data: DeleteJobMaterialRequest,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    components.ledger.delete_job_material(data.job_id, data.material_id, cancel=cancel)
    return Response(status_code=204)


# --------- Trabajos ---------


@router.get("/", response_model=List[JobOut])
def list_jobs(
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.jobs.list_jobs(cancel=cancel)


@router.post("/", response_model=JobOut, status_code=201)
def create_job(
    job_in: JobCreate,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.jobs.create_job(
        name=job_in.name,
        description=job_in.description,
        unit=job_in.unit,
        cancel=cancel,
    )


@router.get("/{job_id}", response_model=JobOut)
def get_job(
    job_id: int,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.jobs.get_job(job_id, cancel=cancel)


@router.put("/{job_id}", response_model=JobOut)
def update_job(
    job_id: int,
    job_in: JobUpdate,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.jobs.update_job(
        job_id,
        name=job_in.name,
        description=job_in.description,
        unit=job_in.unit,
        cancel=cancel,
    )


@router.delete("/{job_id}", status_code=204)
def delete_job(
    job_id: int,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    components.jobs.delete_job(job_id, cancel=cancel)
    return Response(status_code=204)


@router.get("/{job_id}/materials", response_model=List[JobMaterialOut])
def get_materials_for_job(
    job_id: int,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.ledger.materials_for_job(job_id, cancel=cancel)


@router.post("/{job_id}/materials", response_model=List[JobMaterialOut], status_code=201)
def add_job_materials(
    job_id: int,
    data: AddJobMaterialRequest,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    items = [JobMaterialItem(material_id=m.material_id, quantity=m.quantity) for m in data.materials]
    return components.ledger.add_job_materials(job_id, items, cancel=cancel)
