# scripts/seed_demo_project.py
from datetime import datetime, timedelta
from decimal import Decimal

from estimator.core.errors import ConflictError, NotFoundError
from estimator.db.session import SessionLocal, transaction
from estimator.models import Project, ProjectStatus
from estimator.services import Components, build_components
from estimator.services.ledger_service import JobMaterialItem

"""
Seed de ejemplo: catálogo mínimo, un trabajo "Install Door" con su ledger
y un proyecto que lo usa 10 veces.

Edita MATERIALS_CONFIG / JOBS_CONFIG para ajustar el catálogo.
"""

MATERIALS_CONFIG = [
    {
        "material_id": "HNG-01",
        "name": "Hinge",
        "unit": "piece",
        "reference_price": "5.50",
        "prices": [
            {"supplier_name": "Hardware Depot", "price": "5.00", "days_ago": 30},
            {"supplier_name": "BuildMart", "price": "7.00", "days_ago": 2},
        ],
    },
    {
        "material_id": "SCR-01",
        "name": "Screw",
        "unit": "piece",
        "reference_price": "0.10",
        "prices": [],
    },
]

JOBS_CONFIG = [
    {
        "name": "Install Door",
        "description": "Instalación de puerta con bisagras.",
        "unit": "unit",
        "materials": [("HNG-01", "3"), ("SCR-01", "12")],
    },
]

PROJECT_CONFIG = {
    "name": "Demo House",
    "boq": [{"job": "Install Door", "quantity": "10", "labor_cost": "25.00", "selling_price": "120.00"}],
}


def seed_catalog(components: Components) -> None:
    now = datetime.utcnow()
    for cfg in MATERIALS_CONFIG:
        try:
            components.materials.create_material(
                material_id=cfg["material_id"],
                name=cfg["name"],
                unit=cfg["unit"],
                reference_price=Decimal(cfg["reference_price"]),
            )
        except ConflictError:
            print(f"[INFO] Material ya existe: '{cfg['material_id']}', se reutiliza.")
            continue
        print(f"[OK] Material creado: '{cfg['material_id']}'")

        # El historial es sólo de inserción: únicamente al crear el material
        for p in cfg["prices"]:
            components.prices.record_price(
                material_id=cfg["material_id"],
                supplier_name=p["supplier_name"],
                price=Decimal(p["price"]),
                observed_at=now - timedelta(days=p["days_ago"]),
            )
            print(f"  [OK] Precio {p['supplier_name']} = {p['price']}")


def seed_jobs(components: Components) -> dict[str, int]:
    job_ids: dict[str, int] = {}
    existing = {job.name: job.id for job in components.jobs.list_jobs()}
    for cfg in JOBS_CONFIG:
        if cfg["name"] in existing:
            print(f"[INFO] Trabajo ya existe: '{cfg['name']}' (id={existing[cfg['name']]}), se reutiliza.")
            job_ids[cfg["name"]] = existing[cfg["name"]]
            continue

        job = components.jobs.create_job(name=cfg["name"], description=cfg["description"], unit=cfg["unit"])
        components.ledger.add_job_materials(
            job.id,
            [JobMaterialItem(material_id=mid, quantity=Decimal(qty)) for mid, qty in cfg["materials"]],
        )
        job_ids[cfg["name"]] = job.id
        print(f"[OK] Trabajo creado: '{job.name}' (id={job.id})")
    return job_ids


def seed_project(components: Components, job_ids: dict[str, int]) -> int:
    with transaction(SessionLocal, operation="seed_project") as db:
        project = db.query(Project).filter(Project.name == PROJECT_CONFIG["name"]).first()
        if not project:
            project = Project(name=PROJECT_CONFIG["name"], status=ProjectStatus.planning)
            db.add(project)
            db.flush()
        project_id = project.id

    for entry in PROJECT_CONFIG["boq"]:
        components.rollup.add_or_update_boq_job(
            project_id,
            job_ids[entry["job"]],
            quantity=Decimal(entry["quantity"]),
            labor_cost=Decimal(entry["labor_cost"]),
            selling_price=Decimal(entry["selling_price"]),
        )
    print(f"[OK] Proyecto listo: '{PROJECT_CONFIG['name']}' (id={project_id})")
    return project_id


def main() -> None:
    print("=== Seed de proyecto demo ===")
    components = build_components(SessionLocal)

    seed_catalog(components)
    job_ids = seed_jobs(components)
    project_id = seed_project(components, job_ids)

    try:
        summary = components.rollup.project_cost(project_id)
    except NotFoundError as e:
        print(f"[ERROR] {e}")
        return

    print(f"\nCosto total: {summary.total_cost}  Ingreso: {summary.total_revenue}  Margen: {summary.margin}")
    if summary.estimated_fallback_material_ids:
        print(f"Materiales con precio estimado: {', '.join(summary.estimated_fallback_material_ids)}")
    print("\nSeed de proyecto demo completado.\n")


if __name__ == "__main__":
    main()
