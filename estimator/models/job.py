# estimator/models/job.py
from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from estimator.db.base import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    unit = Column(String(50), nullable=False)

    materials = relationship("JobMaterial", back_populates="job", cascade="all, delete-orphan")


class JobMaterial(Base):
    """Cantidad de material requerida para producir UNA unidad del trabajo."""
    __tablename__ = "job_materials"
    __table_args__ = (
        UniqueConstraint("job_id", "material_id", name="uq_job_materials_job_material"),
        CheckConstraint("quantity > 0", name="ck_job_materials_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    material_id = Column(String(50), ForeignKey("materials.material_id"), nullable=False, index=True)
    quantity = Column(Numeric(12, 3), nullable=False)

    job = relationship("Job", back_populates="materials")
    material = relationship("Material")
