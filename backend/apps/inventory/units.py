from decimal import Decimal

from django.conf import settings

from apps.inventory.exceptions import UnitMismatchError


# Business approximation for milk; see DAIRY_MILK_DENSITY_KG_PER_LITER.
MILK_DENSITY_KG_PER_LITER = Decimal("1")

VOLUME_UNITS = {"l": Decimal("1"), "ml": Decimal("0.001")}
MASS_UNITS = {"kg": Decimal("1"), "g": Decimal("0.001")}
COUNT_UNITS = {"pc": Decimal("1")}

UNIT_ALIASES = {
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "lt": "l",
    "milliliter": "ml",
    "milliliters": "ml",
    "kilogram": "kg",
    "kilograms": "kg",
    "kgs": "kg",
    "gram": "g",
    "grams": "g",
    "gr": "g",
    "piece": "pc",
    "pieces": "pc",
    "pcs": "pc",
    "unit": "pc",
    "units": "pc",
    "packet": "pc",
    "packets": "pc",
    "bottle": "pc",
    "bottles": "pc",
}


def normalize_unit(unit: str | None) -> str:
    raw = (unit or "").strip().lower()
    return UNIT_ALIASES.get(raw, raw)


def default_milk_density() -> Decimal:
    configured = getattr(settings, "DAIRY_MILK_DENSITY_KG_PER_LITER", None)
    if configured in (None, ""):
        return MILK_DENSITY_KG_PER_LITER
    return Decimal(str(configured))


def _family(unit: str):
    for family in (VOLUME_UNITS, MASS_UNITS, COUNT_UNITS):
        if unit in family:
            return family
    return None


def convert(quantity: Decimal, from_unit: str, to_unit: str, density_kg_per_liter: Decimal | None = None) -> Decimal:
    """Convert `quantity` between units of the same dimension.

    Volume and mass convert into each other only when a density is given.
    Unknown units convert only to themselves.
    """
    source = normalize_unit(from_unit)
    target = normalize_unit(to_unit)
    quantity = Decimal(quantity)
    if source == target:
        return quantity

    source_family = _family(source)
    target_family = _family(target)
    if source_family is None or target_family is None:
        raise UnitMismatchError(from_unit, to_unit)

    base = quantity * source_family[source]
    if source_family is target_family:
        return base / target_family[target]

    if density_kg_per_liter is None:
        raise UnitMismatchError(from_unit, to_unit)
    if source_family is VOLUME_UNITS and target_family is MASS_UNITS:
        return (base * density_kg_per_liter) / MASS_UNITS[target]
    if source_family is MASS_UNITS and target_family is VOLUME_UNITS:
        return (base / density_kg_per_liter) / VOLUME_UNITS[target]
    raise UnitMismatchError(from_unit, to_unit)


QUANTITY_QUANTUM = Decimal("0.001")


def quantize(value) -> Decimal:
    return Decimal(value).quantize(QUANTITY_QUANTUM)


def density_for(item) -> Decimal | None:
    if item.density_kg_per_liter:
        return item.density_kg_per_liter
    if item.is_derived:
        return default_milk_density()
    return None
