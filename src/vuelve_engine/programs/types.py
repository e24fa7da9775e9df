"""Closed registry of loyalty program types ("motors")."""

from enum import Enum


class ProgramType(str, Enum):
    SELLOS = "sellos"
    CASHBACK = "cashback"
    MULTIPASE = "multipase"
    MEMBRESIA = "membresia"
    DESCUENTO = "descuento"
    CUPON = "cupon"
    REGALO = "regalo"
    AFILIACION = "afiliacion"


# Canonical order; plan normalization and config resolution iterate in this order.
PROGRAM_TYPE_VALUES: tuple[str, ...] = tuple(t.value for t in ProgramType)

DEFAULT_PROGRAM_TYPE = ProgramType.SELLOS.value


def is_program_type(value: object) -> bool:
    """True only for strings naming one of the eight program types."""
    return isinstance(value, str) and value in PROGRAM_TYPE_VALUES
