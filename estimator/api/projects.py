# estimator/api/projects.py
from datetime import datetime
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import sessionmaker

from estimator.api.clients import ClientOut
from estimator.core.cancellation import CancelScope
from estimator.core.errors import NotFoundError
from estimator.db.deps import get_cancel_scope, get_components, get_session_factory
from estimator.db.session import transaction
from estimator.models import Client, Project, ProjectStatus
from estimator.services import Components
from estimator.services.boq_service import load_project
from estimator.services.validators import (
    MAX_DIGITS,
    MONEY_PLACES,
    QUANTITY_PLACES,
    clean_optional,
    clean_required,
)

router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectBase(BaseModel):
    name: str
    description: str | None = None
    address: str | None = None
    client_id: int | None = None


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    address: str | None = None
    client_id: int | None = None
    status: ProjectStatus | None = None


class ProjectOut(ProjectBase):
    id: int
    status: ProjectStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectDetailOut(ProjectOut):
    client: ClientOut | None = None


class BOQJobRequest(BaseModel):
    job_id: int
    quantity: Decimal = Field(..., gt=0, max_digits=MAX_DIGITS, decimal_places=QUANTITY_PLACES)
    labor_cost: Decimal = Field(..., ge=0, max_digits=MAX_DIGITS, decimal_places=MONEY_PLACES)
    selling_price: Decimal = Field(..., ge=0, max_digits=MAX_DIGITS, decimal_places=MONEY_PLACES)


class BOQJobOut(BaseModel):
    id: int
    project_id: int
    job_id: int
    quantity: Decimal
    labor_cost: Decimal
    selling_price: Decimal

    class Config:
        from_attributes = True


class MaterialPriceDetailOut(BaseModel):
    material_id: str
    name: str
    total_quantity: Decimal
    unit: str
    estimated_price: Decimal
    avg_actual_price: Decimal | None
    actual_price: Decimal | None
    supplier_name: str | None

    class Config:
        from_attributes = True


class MaterialPriceListOut(BaseModel):
    materials: List[MaterialPriceDetailOut]


class MaterialRequirementOut(BaseModel):
    material_id: str
    total_quantity: Decimal


class MaterialCostLineOut(BaseModel):
    material_id: str
    quantity: Decimal
    unit_price: Decimal
    price_source: str
    cost: Decimal

    class Config:
        from_attributes = True


class JobCostLineOut(BaseModel):
    job_id: int
    job_name: str
    quantity: Decimal
    material_cost: Decimal
    labor_cost: Decimal
    total_cost: Decimal
    revenue: Decimal
    margin: Decimal
    materials: List[MaterialCostLineOut]

    class Config:
        from_attributes = True


class ProjectCostOut(BaseModel):
    project_id: int
    total_material_cost: Decimal
    total_labor_cost: Decimal
    total_cost: Decimal
    total_revenue: Decimal
    margin: Decimal
    margin_percent: Decimal | None
    estimated_fallback_material_ids: List[str]
    jobs: List[JobCostLineOut]

    class Config:
        from_attributes = True


def _check_client(db, client_id: int | None) -> None:
    if client_id is not None and not db.get(Client, client_id):
        raise NotFoundError("Cliente no encontrado.", client_id=client_id)


# --------- Proyectos ---------


@router.get("/", response_model=List[ProjectOut])
def list_projects(session_factory: sessionmaker = Depends(get_session_factory)):
    with transaction(session_factory, operation="list_projects", read_only=True) as db:
        return db.query(Project).order_by(Project.id.desc()).all()


@router.post("/", response_model=ProjectOut, status_code=201)
def create_project(
    project_in: ProjectCreate,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    project = Project(
        name=clean_required(project_in.name, "name"),
        description=clean_optional(project_in.description),
        address=clean_optional(project_in.address),
        status=ProjectStatus.planning,
        client_id=project_in.client_id,
    )
    with transaction(session_factory, operation="create_project") as db:
        _check_client(db, project_in.client_id)
        db.add(project)
        db.flush()
    return project


@router.get("/{project_id}", response_model=ProjectDetailOut)
def get_project(
    project_id: int,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    with transaction(session_factory, operation="get_project", read_only=True) as db:
        project = load_project(db, project_id)
        project.client  # cargar antes de cerrar la sesión
        return project


@router.put("/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    data = project_in.model_dump(exclude_unset=True)
    with transaction(session_factory, operation="update_project") as db:
        project = load_project(db, project_id)

        if "name" in data and data["name"]:
            project.name = clean_required(data["name"], "name")
        if "description" in data:
            project.description = clean_optional(data["description"])
        if "address" in data:
            project.address = clean_optional(data["address"])
        if "client_id" in data:
            _check_client(db, data["client_id"])
            project.client_id = data["client_id"]
        if "status" in data and data["status"] is not None:
            project.status = data["status"]

        project.updated_at = datetime.utcnow()
        db.add(project)
        db.flush()
    return project


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: int,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    # Los trabajos del BOQ se borran en cascada con el proyecto
    with transaction(session_factory, operation="delete_project") as db:
        project = load_project(db, project_id)
        db.delete(project)
        db.flush()
    return Response(status_code=204)


# --------- BOQ del proyecto ---------


@router.get("/{project_id}/boq/jobs", response_model=List[BOQJobOut])
def list_boq_jobs(
    project_id: int,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.rollup.list_boq_jobs(project_id, cancel=cancel)


@router.put("/{project_id}/boq/jobs", response_model=BOQJobOut)
def add_or_update_boq_job(
    project_id: int,
    data: BOQJobRequest,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.rollup.add_or_update_boq_job(
        project_id,
        data.job_id,
        quantity=data.quantity,
        labor_cost=data.labor_cost,
        selling_price=data.selling_price,
        cancel=cancel,
    )


@router.delete("/{project_id}/boq/jobs/{job_id}", status_code=204)
def remove_boq_job(
    project_id: int,
    job_id: int,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    components.rollup.remove_boq_job(project_id, job_id, cancel=cancel)
    return Response(status_code=204)


@router.get("/{project_id}/boq/requirements", response_model=List[MaterialRequirementOut])
def get_material_requirements(
    project_id: int,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    totals = components.boq.material_requirements(project_id, cancel=cancel)
    return [MaterialRequirementOut(material_id=mid, total_quantity=qty) for mid, qty in totals.items()]


@router.get("/{project_id}/boq/materials", response_model=MaterialPriceListOut)
def get_material_price_details(
    project_id: int,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    details = components.boq.material_price_details(project_id, cancel=cancel)
    return MaterialPriceListOut(materials=[MaterialPriceDetailOut.model_validate(d) for d in details])


@router.get("/{project_id}/boq/cost", response_model=ProjectCostOut)
def get_project_cost(
    project_id: int,
    components: Components = Depends(get_components),
    cancel: CancelScope = Depends(get_cancel_scope),
):
    return components.rollup.project_cost(project_id, cancel=cancel)
