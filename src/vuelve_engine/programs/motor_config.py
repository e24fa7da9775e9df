"""Per-program-type configuration resolution.

A program's ``config`` column is a single JSON object. The current layout
namespaces settings under ``config["motors"][<type>]``; older rows keep a
handful of flat top-level keys per type. Namespaced settings win whenever
they are non-empty, otherwise the legacy whitelist for the type is picked.
"""

from typing import Any, Mapping

from vuelve_engine.programs.types import PROGRAM_TYPE_VALUES

LEGACY_TYPED_KEYS: dict[str, tuple[str, ...]] = {
    "sellos": (),
    "cashback": ("porcentaje", "tope_mensual"),
    "multipase": ("cantidad_usos", "precio_pack"),
    "membresia": ("duracion_dias", "beneficios", "precio_mensual"),
    "descuento": ("niveles",),
    "cupon": ("descuento_porcentaje", "valido_hasta"),
    "regalo": ("valor_maximo",),
    "afiliacion": (),
}


def _as_dict(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _pick_keys(source: Mapping[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    return {key: source[key] for key in keys if key in source}


def _resolve(cfg: dict[str, Any], motors: dict[str, Any], program_type: str) -> dict[str, Any]:
    from_motors = _as_dict(motors.get(program_type))
    if from_motors:
        return from_motors
    return _pick_keys(cfg, LEGACY_TYPED_KEYS.get(program_type, ()))


def get_motor_config(raw_config: Any, program_type: str) -> dict[str, Any]:
    """Return the effective configuration of one program type.

    Never raises: anything that is not a mapping resolves to ``{}``.
    """
    cfg = _as_dict(raw_config)
    return _resolve(cfg, _as_dict(cfg.get("motors")), program_type)


def get_all_motor_configs(raw_config: Any) -> dict[str, dict[str, Any]]:
    """Resolve every program type, omitting the ones with no settings."""
    cfg = _as_dict(raw_config)
    motors = _as_dict(cfg.get("motors"))
    output: dict[str, dict[str, Any]] = {}
    for program_type in PROGRAM_TYPE_VALUES:
        resolved = _resolve(cfg, motors, program_type)
        if resolved:
            output[program_type] = resolved
    return output


def merge_motor_config(
    raw_config: Any, by_motor: Mapping[str, Any]
) -> dict[str, Any]:
    """Replace the ``motors`` namespace, keeping every other top-level key.

    Non-mapping entries in ``by_motor`` are skipped. ``raw_config`` is not
    mutated.
    """
    cfg = _as_dict(raw_config)
    next_motors = {
        program_type: dict(value)
        for program_type, value in _as_dict(by_motor).items()
        if isinstance(value, Mapping)
    }
    return {**cfg, "motors": next_motors}
