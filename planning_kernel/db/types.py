"""
Module: planning_kernel.db.types
Responsibility: Storage scale and the rounding helpers shared by the engine
    and the persistence layer.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, selectors/ and planning_engines.  MUST NOT import from any of
    those layers.

Invariants enforced:
    - No floats anywhere in the planning kernel.  Money, fractions and rates
      use Decimal with an explicit storage scale of 9 places.
    - round_count() (half-up) and ceil_count() (toward +infinity) are the
      ONLY sanctioned ways to turn a Decimal quantity into a whole count.
    - Rounding never raises for a finite value, whatever its magnitude.
"""

from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, localcontext

STORAGE_DECIMAL_PLACES = 9
STORAGE_QUANTUM = Decimal(1).scaleb(-STORAGE_DECIMAL_PLACES)
_WHOLE = Decimal(1)


def _quantize(value: Decimal, quantum: Decimal, rounding: str) -> Decimal:
    # quantize() needs a precision covering every digit of the result.
    needed = value.adjusted() - quantum.as_tuple().exponent + 2
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, needed)
        return value.quantize(quantum, rounding=rounding)


def quantize_storage(value: Decimal) -> Decimal:
    """Quantize to the storage scale (9 places, half-up)."""
    return _quantize(value, STORAGE_QUANTUM, ROUND_HALF_UP)


def round_count(value: Decimal) -> int:
    """Round to the nearest whole count, halves away from zero."""
    return int(_quantize(value, _WHOLE, ROUND_HALF_UP))


def ceil_count(value: Decimal) -> int:
    """Round up to the next whole count."""
    return int(_quantize(value, _WHOLE, ROUND_CEILING))
