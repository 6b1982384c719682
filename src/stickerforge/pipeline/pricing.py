from __future__ import annotations

"""Sticker price evaluation from cutline geometry and the pricing tables."""

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from ..config import PricingConfig, Resolution
from ..geometry.kernel import Bounds, Point2D, perimeter

logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4


@dataclass(frozen=True)
class PricingResult:
    total_cents: int
    complexity_multiplier: float

    @staticmethod
    def zero() -> "PricingResult":
        return PricingResult(total_cents=0, complexity_multiplier=1.0)


def price(
    config: PricingConfig,
    quantity: int,
    material_id: str | None,
    bounds: Bounds | None,
    cutline: Iterable[Sequence[Point2D]],
    resolution_id: str | None,
) -> PricingResult:
    if quantity <= 0:
        return PricingResult.zero()
    if bounds is None or bounds.is_degenerate:
        return PricingResult.zero()
    resolution = config.resolution(resolution_id)
    if resolution is None:
        logger.debug("Unknown resolution %r, pricing as zero", resolution_id)
        return PricingResult.zero()

    ppi = resolution.ppi
    square_inches = (bounds.width / ppi) * (bounds.height / ppi)
    base_cents = square_inches * config.price_per_square_inch_cents

    material = config.material(material_id)
    material_multiplier = material.cost_multiplier if material is not None else 1.0

    perimeter_inches = perimeter(cutline) / ppi
    complexity_multiplier = complexity_multiplier_for(config, perimeter_inches)
    discount = discount_for(config, quantity)

    total = (
        base_cents
        * quantity
        * material_multiplier
        * complexity_multiplier
        * resolution.cost_multiplier
        * (1 - discount)
    )
    return PricingResult(total_cents=_round_half_up(total), complexity_multiplier=complexity_multiplier)


def complexity_multiplier_for(config: PricingConfig, perimeter_inches: float) -> float:
    # Strictly below a finite threshold; a perimeter equal to it moves on.
    for tier in config.complexity_tiers:
        if math.isinf(tier.threshold_inches) or perimeter_inches < tier.threshold_inches:
            return tier.multiplier
    return 1.0


def discount_for(config: PricingConfig, quantity: int) -> float:
    for tier in config.quantity_discounts:
        if quantity >= tier.quantity:
            return tier.discount
    return 0.0


def design_dimensions(bounds: Bounds, resolution: Resolution, metric: bool = False) -> tuple[float, float, str]:
    width = bounds.width / resolution.ppi
    height = bounds.height / resolution.ppi
    if metric:
        return width * MM_PER_INCH, height * MM_PER_INCH, "mm"
    return width, height, "in"


def format_price(amount_cents: int) -> str:
    return f"${amount_cents / 100:.2f}"


def _round_half_up(value: float) -> int:
    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
