from decimal import Decimal

from rest_framework import status


def _fmt(value) -> str:
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    return str(value)


class LedgerError(Exception):
    """Base class for domain failures raised by ledger operations.

    Raising one inside `transaction.atomic()` rolls back every write made by the
    operation. `data` carries the structured details rendered by the API layer.
    """

    code = "ledger_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, data=None):
        super().__init__(detail)
        self.detail = detail
        self.data = data or {}


class InsufficientStockError(LedgerError):
    code = "insufficient_stock"

    def __init__(self, shortfalls: list[dict]):
        self.shortfalls = shortfalls
        parts = [
            f"{row['item']}: need {_fmt(row['required'])} {row['unit']}, have {_fmt(row['available'])}"
            for row in shortfalls
        ]
        super().__init__(
            "Insufficient stock. " + "; ".join(parts),
            data={
                "shortfalls": [
                    {
                        "item": row["item"],
                        "required": _fmt(row["required"]),
                        "available": _fmt(row["available"]),
                        "shortfall": _fmt(row["shortfall"]),
                        "unit": row["unit"],
                    }
                    for row in shortfalls
                ]
            },
        )

    @classmethod
    def single(cls, item: str, required: Decimal, available: Decimal, unit: str):
        return cls(
            [
                {
                    "item": item,
                    "required": required,
                    "available": available,
                    "shortfall": required - available,
                    "unit": unit,
                }
            ]
        )


class InsufficientQuantityError(LedgerError):
    code = "insufficient_quantity"

    def __init__(self, requested: Decimal, available: Decimal, production_remaining=None, carryover=None):
        self.requested = requested
        self.available = available
        self.production_remaining = production_remaining
        self.carryover = carryover
        detail = f"Requested {_fmt(requested)} but only {_fmt(available)} available"
        data = {"requested": _fmt(requested), "available": _fmt(available)}
        if production_remaining is not None:
            detail += f" ({_fmt(production_remaining)} from production, {_fmt(carryover)} carried over)"
            data["production_remaining"] = _fmt(production_remaining)
            data["carryover"] = _fmt(carryover)
        super().__init__(detail + ".", data=data)


class MissingRecipeError(LedgerError):
    code = "missing_recipe"

    def __init__(self, product_name: str):
        super().__init__(f"No recipe defined for product {product_name}.", data={"product": product_name})


class UnitMismatchError(LedgerError):
    code = "unit_mismatch"

    def __init__(self, from_unit: str, to_unit: str):
        super().__init__(
            f"Cannot convert {from_unit} to {to_unit}.",
            data={"from_unit": from_unit, "to_unit": to_unit},
        )


class DerivedStockMutationError(LedgerError):
    code = "derived_stock_mutation"

    def __init__(self, item_name: str):
        super().__init__(
            f"{item_name} stock is derived from collections and production and cannot be adjusted directly.",
            data={"item": item_name},
        )


class SaleAlreadyReversedError(LedgerError):
    code = "sale_already_reversed"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, sale_id):
        super().__init__(f"Sale {sale_id} has already been reversed.", data={"sale": str(sale_id)})


class InternalConsistencyError(LedgerError):
    code = "internal_consistency"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
