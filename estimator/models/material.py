# estimator/models/material.py
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, Numeric, String
from sqlalchemy.orm import relationship

from estimator.db.base import Base


class Material(Base):
    __tablename__ = "materials"
    __table_args__ = (
        CheckConstraint("reference_price >= 0", name="ck_materials_reference_price_non_negative"),
    )

    # Clave asignada por el usuario (código de catálogo)
    material_id = Column(String(50), primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    unit = Column(String(50), nullable=False)

    # Precio de referencia del catálogo (precio estimado)
    reference_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # Historial inmutable: el ORM nunca lo toca al borrar el material
    supplier_prices = relationship("SupplierPrice", back_populates="material", passive_deletes="all")
