"""Design pipeline stages: cutline editing, pricing, nesting and layout."""

from .cutline import EditorState, UnusableOutlineError
from .nesting import NestResult, Placement, PlacementCandidate, nest
from .pricing import PricingResult, price

__all__ = [
    "EditorState",
    "NestResult",
    "Placement",
    "PlacementCandidate",
    "PricingResult",
    "UnusableOutlineError",
    "nest",
    "price",
]
