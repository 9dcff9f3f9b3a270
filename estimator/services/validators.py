# estimator/services/validators.py
from decimal import Decimal, InvalidOperation

from estimator.core.errors import ValidationError

# Deben coincidir con las columnas Numeric(12, 3) / Numeric(12, 2)
MAX_DIGITS = 12
QUANTITY_PLACES = 3
MONEY_PLACES = 2


def clean_required(value: str | None, field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"El campo {field} es obligatorio.", field=field)
    return cleaned


def clean_optional(value: str | None) -> str | None:
    return (value or "").strip() or None


def to_decimal(
    value: object,
    field: str,
    *,
    places: int | None = None,
    max_digits: int = MAX_DIGITS,
) -> Decimal:
    """
    Convierte a Decimal. Con `places`, el valor tiene que caber tal cual en la
    columna: más decimales o más dígitos enteros de los que guarda es
    ValidationError, nunca un redondeo silencioso del motor.
    """
    if value is None:
        raise ValidationError(f"El campo {field} es obligatorio.", field=field)
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} debe ser numérico.", field=field)
    if not number.is_finite():
        raise ValidationError(f"{field} debe ser numérico.", field=field)
    if places is None:
        return number

    try:
        scaled = number.quantize(Decimal(1).scaleb(-places))
    except InvalidOperation:
        raise ValidationError(f"{field} excede el tamaño permitido.", field=field, max_digits=max_digits)
    if scaled != number:
        raise ValidationError(f"{field} admite como máximo {places} decimales.", field=field, places=places)
    if abs(scaled) >= Decimal(10) ** (max_digits - places):
        raise ValidationError(f"{field} excede el tamaño permitido.", field=field, max_digits=max_digits)
    return scaled


def positive(value: object, field: str, *, places: int | None = None, max_digits: int = MAX_DIGITS) -> Decimal:
    number = to_decimal(value, field, places=places, max_digits=max_digits)
    if number <= 0:
        raise ValidationError(f"{field} debe ser mayor a 0.", field=field)
    return number


def non_negative(value: object, field: str, *, places: int | None = None, max_digits: int = MAX_DIGITS) -> Decimal:
    number = to_decimal(value, field, places=places, max_digits=max_digits)
    if number < 0:
        raise ValidationError(f"{field} no puede ser negativo.", field=field)
    return number
