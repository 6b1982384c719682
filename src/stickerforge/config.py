from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StickerConfig:
    cutline_offset_px: float
    simplify_epsilon_px: float
    clean_distance: float
    clipper_scale: int
    arc_tolerance: float
    nest_spacing: float
    nest_rotation_steps: int
    marker_size: float

    @staticmethod
    def default_path(project_root: Path) -> Path:
        return _user_config_dir() / "stickerforge.json"

    @staticmethod
    def load_default(project_root: Path) -> "StickerConfig":
        user_path = StickerConfig.default_path(project_root)
        if user_path.exists():
            return StickerConfig.from_json(user_path)
        bundled_path = project_root / "config" / "stickerforge.json"
        if bundled_path.exists():
            config = StickerConfig.from_json(bundled_path)
            try:
                user_path.parent.mkdir(parents=True, exist_ok=True)
                user_path.write_text(bundled_path.read_text(encoding="utf-8"), encoding="utf-8")
            except OSError:
                pass
            return config
        return StickerConfig.from_dict({})

    @staticmethod
    def from_json(path: Path) -> "StickerConfig":
        data = json.loads(path.read_text(encoding="utf-8"))
        return StickerConfig.from_dict(data)

    @staticmethod
    def from_dict(data: dict) -> "StickerConfig":
        return StickerConfig(
            cutline_offset_px=float(data.get("cutline_offset_px", 10.0)),
            simplify_epsilon_px=float(data.get("simplify_epsilon_px", 2.0)),
            clean_distance=float(data.get("clean_distance", 1.415)),
            clipper_scale=int(data.get("clipper_scale", 100)),
            arc_tolerance=float(data.get("arc_tolerance", 0.25)),
            nest_spacing=float(data.get("nest_spacing", 0.0)),
            nest_rotation_steps=int(data.get("nest_rotation_steps", 4)),
            marker_size=float(data.get("marker_size", 20.0)),
        )

    def validate(self) -> None:
        if self.cutline_offset_px < 0:
            raise ValueError("cutline_offset_px must be >= 0")
        if self.simplify_epsilon_px < 0:
            raise ValueError("simplify_epsilon_px must be >= 0")
        if self.clean_distance < 0:
            raise ValueError("clean_distance must be >= 0")
        if self.clipper_scale < 1:
            raise ValueError("clipper_scale must be >= 1")
        if self.arc_tolerance <= 0:
            raise ValueError("arc_tolerance must be > 0")
        if self.nest_spacing < 0:
            raise ValueError("nest_spacing must be >= 0")
        if self.nest_rotation_steps < 1:
            raise ValueError("nest_rotation_steps must be >= 1")
        if self.marker_size <= 0:
            raise ValueError("marker_size must be > 0")


@dataclass(frozen=True)
class Material:
    id: str
    name: str
    cost_multiplier: float


@dataclass(frozen=True)
class Resolution:
    id: str
    name: str
    ppi: float
    cost_multiplier: float


@dataclass(frozen=True)
class ComplexityTier:
    threshold_inches: float
    multiplier: float


@dataclass(frozen=True)
class QuantityDiscount:
    quantity: int
    discount: float


@dataclass(frozen=True)
class PricingConfig:
    """Pricing tables as served by the storefront's pricing endpoint.

    Tiers are kept ascending by threshold (``Infinity`` last) and discounts
    descending by quantity, so lookups never have to re-sort.
    """

    price_per_square_inch_cents: float
    materials: tuple[Material, ...]
    resolutions: tuple[Resolution, ...]
    complexity_tiers: tuple[ComplexityTier, ...]
    quantity_discounts: tuple[QuantityDiscount, ...]

    @staticmethod
    def from_json(path: Path) -> "PricingConfig":
        data = json.loads(path.read_text(encoding="utf-8"))
        config = PricingConfig.from_dict(data)
        config.validate()
        return config

    @staticmethod
    def from_dict(data: dict) -> "PricingConfig":
        if not isinstance(data, dict):
            raise ValueError("pricing config must be an object")
        price = _required_number(data, "pricePerSquareInchCents")
        materials = tuple(
            Material(
                id=str(_required(item, "id", "materials")),
                name=str(item.get("name", "")),
                cost_multiplier=_required_number(item, "costMultiplier", "materials"),
            )
            for item in _ensure_records(data.get("materials", []), "materials")
        )
        resolutions = tuple(
            Resolution(
                id=str(_required(item, "id", "resolutions")),
                name=str(item.get("name", "")),
                ppi=_required_number(item, "ppi", "resolutions"),
                cost_multiplier=_required_number(item, "costMultiplier", "resolutions"),
            )
            for item in _ensure_records(data.get("resolutions", []), "resolutions")
        )
        complexity = data.get("complexity") or {}
        if not isinstance(complexity, dict):
            raise ValueError("complexity must be an object")
        tiers = [
            ComplexityTier(
                threshold_inches=_threshold(_required(item, "thresholdInches", "complexity.tiers")),
                multiplier=_required_number(item, "multiplier", "complexity.tiers"),
            )
            for item in _ensure_records(complexity.get("tiers", []), "complexity.tiers")
        ]
        discounts = [
            QuantityDiscount(
                quantity=int(_required_number(item, "quantity", "quantityDiscounts")),
                discount=_required_number(item, "discount", "quantityDiscounts"),
            )
            for item in _ensure_records(data.get("quantityDiscounts", []), "quantityDiscounts")
        ]
        return PricingConfig(
            price_per_square_inch_cents=price,
            materials=materials,
            resolutions=resolutions,
            complexity_tiers=tuple(sorted(tiers, key=lambda tier: tier.threshold_inches)),
            quantity_discounts=tuple(sorted(discounts, key=lambda tier: tier.quantity, reverse=True)),
        )

    def validate(self) -> None:
        if self.price_per_square_inch_cents < 0:
            raise ValueError("pricePerSquareInchCents must be >= 0")
        for material in self.materials:
            if material.cost_multiplier < 0:
                raise ValueError(f"material {material.id} costMultiplier must be >= 0")
        for resolution in self.resolutions:
            if resolution.ppi <= 0:
                raise ValueError(f"resolution {resolution.id} ppi must be > 0")
            if resolution.cost_multiplier < 0:
                raise ValueError(f"resolution {resolution.id} costMultiplier must be >= 0")
        for tier in self.complexity_tiers:
            if tier.multiplier < 0:
                raise ValueError("complexity tier multiplier must be >= 0")
        for tier in self.quantity_discounts:
            if not 0.0 <= tier.discount <= 1.0:
                raise ValueError("quantity discount must be in [0, 1]")

    def material(self, material_id: str | None) -> Material | None:
        for material in self.materials:
            if material.id == material_id:
                return material
        return None

    def resolution(self, resolution_id: str | None) -> Resolution | None:
        for resolution in self.resolutions:
            if resolution.id == resolution_id:
                return resolution
        return None


def _ensure_records(value, field: str) -> list[dict]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"{field} must be a list")
    for item in value:
        if not isinstance(item, dict):
            raise ValueError(f"{field} entries must be objects")
    return list(value)


def _required(item: dict, key: str, field: str | None = None):
    if key not in item or item[key] is None:
        where = f"{field} entry" if field else "pricing config"
        raise ValueError(f"{where} is missing required field '{key}'")
    return item[key]


def _required_number(item: dict, key: str, field: str | None = None) -> float:
    value = _required(item, key, field)
    if isinstance(value, bool):
        raise ValueError(f"'{key}' must be a number")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{key}' must be a number") from exc


def _threshold(value) -> float:
    # The pricing endpoint sends the catch-all tier as the string "Infinity".
    if isinstance(value, str) and value.strip().lower() in {"infinity", "inf"}:
        return math.inf
    if isinstance(value, bool):
        raise ValueError("'thresholdInches' must be a number or 'Infinity'")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("'thresholdInches' must be a number or 'Infinity'") from exc


def _user_config_dir() -> Path:
    if os.name == "nt":
        base = os.environ.get("APPDATA") or os.environ.get("USERPROFILE")
        if base:
            return Path(base) / "StickerForge"
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / "stickerforge"
    return Path.home() / ".config" / "stickerforge"
