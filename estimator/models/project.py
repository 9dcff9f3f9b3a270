# estimator/models/project.py
import enum
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from estimator.db.base import Base


class ProjectStatus(str, enum.Enum):
    planning = "planning"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    address = Column(String(255), nullable=True)
    status = Column(
        Enum(ProjectStatus, name="project_status"),
        nullable=False,
        default=ProjectStatus.planning,
    )
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("Client", back_populates="projects")
    boq_jobs = relationship("BOQJob", back_populates="project", cascade="all, delete-orphan")


class BOQJob(Base):
    """Instancia de un trabajo dentro del presupuesto (BOQ) de un proyecto."""
    __tablename__ = "boq_jobs"
    __table_args__ = (
        UniqueConstraint("project_id", "job_id", name="uq_boq_jobs_project_job"),
        CheckConstraint("quantity > 0", name="ck_boq_jobs_quantity_positive"),
        CheckConstraint("labor_cost >= 0", name="ck_boq_jobs_labor_cost_non_negative"),
        CheckConstraint("selling_price >= 0", name="ck_boq_jobs_selling_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)

    quantity = Column(Numeric(12, 3), nullable=False)
    # Costo de mano de obra por unidad del trabajo
    labor_cost = Column(Numeric(12, 2), nullable=False, default=0)
    # Precio de venta por unidad del trabajo
    selling_price = Column(Numeric(12, 2), nullable=False, default=0)

    project = relationship("Project", back_populates="boq_jobs")
    job = relationship("Job")
