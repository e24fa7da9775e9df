"""Typed configuration variants, one per program type.

``legacy_to_variant`` is the single migration point from the untyped config
blob (namespaced or legacy flat fields) into a validated model. Consumers read
typed attributes instead of probing two places in a dict.
"""

from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from vuelve_engine.programs.motor_config import get_motor_config


class DiscountTier(BaseModel):
    visitas: int = Field(..., ge=0)
    descuento: float = Field(..., ge=0, le=100)


DEFAULT_DISCOUNT_TIERS = [
    DiscountTier(visitas=5, descuento=5),
    DiscountTier(visitas=15, descuento=10),
    DiscountTier(visitas=30, descuento=15),
]


class SellosConfig(BaseModel):
    tipo: Literal["sellos"] = "sellos"


class CashbackConfig(BaseModel):
    tipo: Literal["cashback"] = "cashback"
    porcentaje: float = Field(default=5, gt=0, le=100)
    tope_mensual: int = Field(default=999_999, ge=0)


class MultipaseConfig(BaseModel):
    tipo: Literal["multipase"] = "multipase"
    cantidad_usos: int = Field(default=10, ge=1)
    precio_pack: Optional[int] = Field(default=None, ge=0)


class MembresiaConfig(BaseModel):
    tipo: Literal["membresia"] = "membresia"
    duracion_dias: int = Field(default=30, ge=1)
    beneficios: list[str] = []
    precio_mensual: Optional[int] = Field(default=None, ge=0)


class DescuentoConfig(BaseModel):
    tipo: Literal["descuento"] = "descuento"
    niveles: list[DiscountTier] = Field(default_factory=lambda: list(DEFAULT_DISCOUNT_TIERS))


class CuponConfig(BaseModel):
    tipo: Literal["cupon"] = "cupon"
    descuento_porcentaje: float = Field(default=15, ge=1, le=100)
    valido_hasta: Optional[str] = None


class RegaloConfig(BaseModel):
    tipo: Literal["regalo"] = "regalo"
    valor_maximo: int = Field(default=0, ge=0)


class AfiliacionConfig(BaseModel):
    tipo: Literal["afiliacion"] = "afiliacion"


MotorConfig = Annotated[
    Union[
        SellosConfig,
        CashbackConfig,
        MultipaseConfig,
        MembresiaConfig,
        DescuentoConfig,
        CuponConfig,
        RegaloConfig,
        AfiliacionConfig,
    ],
    Field(discriminator="tipo"),
]

VARIANT_MODELS: dict[str, type[BaseModel]] = {
    "sellos": SellosConfig,
    "cashback": CashbackConfig,
    "multipase": MultipaseConfig,
    "membresia": MembresiaConfig,
    "descuento": DescuentoConfig,
    "cupon": CuponConfig,
    "regalo": RegaloConfig,
    "afiliacion": AfiliacionConfig,
}


def legacy_to_variant(program_type: str, flat_fields: Any) -> Optional[BaseModel]:
    """Build the typed variant for ``program_type`` from a field mapping.

    Invalid fields are dropped and fall back to the variant's defaults.
    Returns None for an unknown program type.
    """
    model = VARIANT_MODELS.get(program_type)
    if model is None:
        return None
    if not isinstance(flat_fields, Mapping):
        return model()

    data = {
        key: value
        for key, value in flat_fields.items()
        if key in model.model_fields and key != "tipo" and value is not None
    }
    while True:
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            bad = {err["loc"][0] for err in exc.errors() if err["loc"]}
            if not bad & data.keys():
                return model()
            for key in bad:
                data.pop(key, None)


def resolve_variant(raw_config: Any, program_type: str) -> Optional[BaseModel]:
    """Resolve the effective config of a program type as a typed variant."""
    return legacy_to_variant(program_type, get_motor_config(raw_config, program_type))
