# estimator/models/client.py
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from estimator.db.base import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)

    # Datos de contacto (opcionales)
    email = Column(String(200), nullable=True, index=True)
    tel = Column(String(50), nullable=True)
    address = Column(String(255), nullable=True)
    tax_id = Column(String(50), nullable=True, unique=True)

    projects = relationship("Project", back_populates="client")
