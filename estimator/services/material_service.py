# estimator/services/material_service.py
import logging
from decimal import Decimal

from sqlalchemy.orm import Session, sessionmaker

from estimator.core.cancellation import CancelScope
from estimator.core.errors import ConflictError, ErrorKind, NotFoundError
from estimator.db.session import transaction
from estimator.models import JobMaterial, Material, SupplierPrice
from estimator.services.validators import MONEY_PLACES, clean_required, non_negative

logger = logging.getLogger(__name__)


def load_material(db: Session, material_id: str) -> Material:
    material = db.get(Material, material_id)
    if not material:
        raise NotFoundError("Material no encontrado.", material_id=material_id)
    return material


class MaterialCatalog:
    """Catálogo maestro de materiales con su precio de referencia (estimado)."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def create_material(
        self,
        *,
        material_id: str,
        name: str,
        unit: str,
        reference_price: Decimal = Decimal("0"),
        cancel: CancelScope | None = None,
    ) -> Material:
        material = Material(
            material_id=clean_required(material_id, "material_id"),
            name=clean_required(name, "name"),
            unit=clean_required(unit, "unit"),
            reference_price=non_negative(reference_price, "reference_price", places=MONEY_PLACES),
        )
        # La PK detecta duplicados; el IntegrityError se traduce a Conflict
        with transaction(self._session_factory, operation="create_material", cancel=cancel) as db:
            db.add(material)
            db.flush()
        logger.info("Material creado: %s", material.material_id)
        return material

    def update_material(
        self,
        material_id: str,
        *,
        name: str,
        unit: str,
        reference_price: Decimal | None = None,
        cancel: CancelScope | None = None,
    ) -> Material:
        name = clean_required(name, "name")
        unit = clean_required(unit, "unit")
        price = None
        if reference_price is not None:
            price = non_negative(reference_price, "reference_price", places=MONEY_PLACES)

        with transaction(self._session_factory, operation="update_material", cancel=cancel) as db:
            material = load_material(db, material_id)
            material.name = name
            material.unit = unit
            if price is not None:
                material.reference_price = price
            db.add(material)
            db.flush()
        return material

    def get_material(self, material_id: str, *, cancel: CancelScope | None = None) -> Material:
        with transaction(self._session_factory, operation="get_material", cancel=cancel, read_only=True) as db:
            return load_material(db, material_id)

    def list_materials(self, *, cancel: CancelScope | None = None) -> list[Material]:
        with transaction(self._session_factory, operation="list_materials", cancel=cancel, read_only=True) as db:
            return db.query(Material).order_by(Material.name, Material.material_id).all()

    def delete_material(self, material_id: str, *, cancel: CancelScope | None = None) -> None:
        """
        Borra un material. Dos causas de Conflict, distinguibles por
        `context["reason"]`:

        - "in_use": alguna fila del ledger lo usa. Al quitar esas filas el
          borrado procede. Si otra transacción agrega una referencia en
          paralelo, la FK del motor rechaza el borrado y también es Conflict.
        - "price_history": tiene precios de proveedor registrados. El
          historial es sólo de inserción, así que este bloqueo es permanente.
        """
        with transaction(
            self._session_factory,
            operation="delete_material",
            cancel=cancel,
            on_foreign_key=ErrorKind.conflict,
        ) as db:
            material = load_material(db, material_id)
            in_use = (
                db.query(JobMaterial.id)
                .filter(JobMaterial.material_id == material_id)
                .first()
            )
            if in_use:
                raise ConflictError(
                    "El material está en uso y no puede eliminarse.",
                    material_id=material_id,
                    reason="in_use",
                )
            has_history = (
                db.query(SupplierPrice.id)
                .filter(SupplierPrice.material_id == material_id)
                .first()
            )
            if has_history:
                raise ConflictError(
                    "El material tiene historial de precios y no puede eliminarse.",
                    material_id=material_id,
                    reason="price_history",
                )
            db.delete(material)
            db.flush()
        logger.info("Material eliminado: %s", material_id)

    def estimated_price(self, material_id: str, *, cancel: CancelScope | None = None) -> Decimal:
        with transaction(self._session_factory, operation="estimated_price", cancel=cancel, read_only=True) as db:
            return Decimal(str(load_material(db, material_id).reference_price))
