# estimator/models/pricing.py
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship

from estimator.db.base import Base


class SupplierPrice(Base):
    """
    Observación de precio real de compra. Solo se agregan filas; nunca se
    actualizan ni se borran.
    """
    __tablename__ = "supplier_prices"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_supplier_prices_price_non_negative"),
        Index("ix_supplier_prices_material_observed", "material_id", "observed_at"),
    )

    id = Column(Integer, primary_key=True, index=True)

    material_id = Column(String(50), ForeignKey("materials.material_id"), nullable=False, index=True)
    supplier_name = Column(String(200), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)

    observed_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    material = relationship("Material", back_populates="supplier_prices")
