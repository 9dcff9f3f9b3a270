"""create catalog, ledger and boq tables

Revision ID: 4a7d2e9c1b30
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4a7d2e9c1b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create clients, projects, materials, jobs, ledger, supplier prices and boq jobs."""
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("tel", sa.String(length=50), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("tax_id", sa.String(length=50), nullable=True, unique=True),
    )
    op.create_index("ix_clients_id", "clients", ["id"])
    op.create_index("ix_clients_name", "clients", ["name"])
    op.create_index("ix_clients_email", "clients", ["email"])

    project_status = sa.Enum("planning", "in_progress", "completed", "cancelled", name="project_status")
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("status", project_status, nullable=False, server_default="planning"),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_projects_id", "projects", ["id"])
    op.create_index("ix_projects_name", "projects", ["name"])
    op.create_index("ix_projects_client_id", "projects", ["client_id"])

    op.create_table(
        "materials",
        sa.Column("material_id", sa.String(length=50), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("unit", sa.String(length=50), nullable=False),
        sa.Column("reference_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.CheckConstraint("reference_price >= 0", name="ck_materials_reference_price_non_negative"),
    )
    op.create_index("ix_materials_material_id", "materials", ["material_id"])
    op.create_index("ix_materials_name", "materials", ["name"])

    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit", sa.String(length=50), nullable=False),
    )
    op.create_index("ix_jobs_id", "jobs", ["id"])
    op.create_index("ix_jobs_name", "jobs", ["name"])

    op.create_table(
        "job_materials",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("job_id", sa.Integer(), sa.ForeignKey("jobs.id"), nullable=False),
        sa.Column("material_id", sa.String(length=50), sa.ForeignKey("materials.material_id"), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 3), nullable=False),
        sa.UniqueConstraint("job_id", "material_id", name="uq_job_materials_job_material"),
        sa.CheckConstraint("quantity > 0", name="ck_job_materials_quantity_positive"),
    )
    op.create_index("ix_job_materials_id", "job_materials", ["id"])
    op.create_index("ix_job_materials_job_id", "job_materials", ["job_id"])
    op.create_index("ix_job_materials_material_id", "job_materials", ["material_id"])

    op.create_table(
        "supplier_prices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("material_id", sa.String(length=50), sa.ForeignKey("materials.material_id"), nullable=False),
        sa.Column("supplier_name", sa.String(length=200), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("observed_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("price >= 0", name="ck_supplier_prices_price_non_negative"),
    )
    op.create_index("ix_supplier_prices_id", "supplier_prices", ["id"])
    op.create_index("ix_supplier_prices_material_id", "supplier_prices", ["material_id"])
    op.create_index("ix_supplier_prices_material_observed", "supplier_prices", ["material_id", "observed_at"])

    op.create_table(
        "boq_jobs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("job_id", sa.Integer(), sa.ForeignKey("jobs.id"), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 3), nullable=False),
        sa.Column("labor_cost", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("selling_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.UniqueConstraint("project_id", "job_id", name="uq_boq_jobs_project_job"),
        sa.CheckConstraint("quantity > 0", name="ck_boq_jobs_quantity_positive"),
        sa.CheckConstraint("labor_cost >= 0", name="ck_boq_jobs_labor_cost_non_negative"),
        sa.CheckConstraint("selling_price >= 0", name="ck_boq_jobs_selling_price_non_negative"),
    )
    op.create_index("ix_boq_jobs_id", "boq_jobs", ["id"])
    op.create_index("ix_boq_jobs_project_id", "boq_jobs", ["project_id"])
    op.create_index("ix_boq_jobs_job_id", "boq_jobs", ["job_id"])


def downgrade() -> None:
    """Drop every table created in upgrade, children first."""
    op.drop_index("ix_boq_jobs_job_id", table_name="boq_jobs")
    op.drop_index("ix_boq_jobs_project_id", table_name="boq_jobs")
    op.drop_index("ix_boq_jobs_id", table_name="boq_jobs")
    op.drop_table("boq_jobs")

    op.drop_index("ix_supplier_prices_material_observed", table_name="supplier_prices")
    op.drop_index("ix_supplier_prices_material_id", table_name="supplier_prices")
    op.drop_index("ix_supplier_prices_id", table_name="supplier_prices")
    op.drop_table("supplier_prices")

    op.drop_index("ix_job_materials_material_id", table_name="job_materials")
    op.drop_index("ix_job_materials_job_id", table_name="job_materials")
    op.drop_index("ix_job_materials_id", table_name="job_materials")
    op.drop_table("job_materials")

    op.drop_index("ix_jobs_name", table_name="jobs")
    op.drop_index("ix_jobs_id", table_name="jobs")
    op.drop_table("jobs")

    op.drop_index("ix_materials_name", table_name="materials")
    op.drop_index("ix_materials_material_id", table_name="materials")
    op.drop_table("materials")

    op.drop_index("ix_projects_client_id", table_name="projects")
    op.drop_index("ix_projects_name", table_name="projects")
    op.drop_index("ix_projects_id", table_name="projects")
    op.drop_table("projects")
    sa.Enum(name="project_status").drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_clients_email", table_name="clients")
    op.drop_index("ix_clients_name", table_name="clients")
    op.drop_index("ix_clients_id", table_name="clients")
    op.drop_table("clients")
