from __future__ import annotations

import json
import math
from pathlib import Path

import pytest

from stickerforge.config import PricingConfig, StickerConfig


def test_default_config_values() -> None:
    cfg = StickerConfig.from_dict({})
    assert cfg.cutline_offset_px == 10.0
    assert cfg.simplify_epsilon_px == 2.0
    assert cfg.clean_distance == 1.415
    assert cfg.clipper_scale == 100
    assert cfg.arc_tolerance == 0.25
    assert cfg.nest_spacing == 0.0
    assert cfg.nest_rotation_steps == 4
    assert cfg.marker_size == 20.0
    cfg.validate()


def test_config_from_json(tmp_path: Path) -> None:
    path = tmp_path / "stickerforge.json"
    path.write_text(json.dumps({"cutline_offset_px": 6, "nest_spacing": 3}), encoding="utf-8")
    cfg = StickerConfig.from_json(path)
    assert cfg.cutline_offset_px == 6.0
    assert cfg.nest_spacing == 3.0


def test_load_default_copies_bundled_config(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setattr("os.name", "posix")
    project = tmp_path / "project"
    (project / "config").mkdir(parents=True)
    (project / "config" / "stickerforge.json").write_text(
        json.dumps({"marker_size": 12}), encoding="utf-8"
    )

    cfg = StickerConfig.load_default(project)

    assert cfg.marker_size == 12.0
    assert (tmp_path / "xdg" / "stickerforge" / "stickerforge.json").exists()


@pytest.mark.parametrize(
    ("patch", "message"),
    [
        ({"cutline_offset_px": -1}, "cutline_offset_px must be >= 0"),
        ({"simplify_epsilon_px": -0.5}, "simplify_epsilon_px must be >= 0"),
        ({"clean_distance": -1}, "clean_distance must be >= 0"),
        ({"clipper_scale": 0}, "clipper_scale must be >= 1"),
        ({"arc_tolerance": 0}, "arc_tolerance must be > 0"),
        ({"nest_spacing": -2}, "nest_spacing must be >= 0"),
        ({"nest_rotation_steps": 0}, "nest_rotation_steps must be >= 1"),
        ({"marker_size": 0}, "marker_size must be > 0"),
    ],
)
def test_validation_errors(patch: dict, message: str) -> None:
    cfg = StickerConfig.from_dict(patch)
    with pytest.raises(ValueError, match=message):
        cfg.validate()


PRICING = {
    "pricePerSquareInchCents": 15,
    "materials": [
        {"id": "pp_standard", "name": "Standard Polypropylene", "costMultiplier": 1.0},
        {"id": "pvc_laminated", "costMultiplier": 1.5},
    ],
    "resolutions": [{"id": "dpi_96", "ppi": 96, "costMultiplier": 1.0}],
    "complexity": {
        "tiers": [
            {"thresholdInches": "Infinity", "multiplier": 1.25},
            {"thresholdInches": 24, "multiplier": 1.1},
            {"thresholdInches": 12, "multiplier": 1.0},
        ]
    },
    "quantityDiscounts": [
        {"quantity": 1, "discount": 0.0},
        {"quantity": 500, "discount": 0.15},
        {"quantity": 200, "discount": 0.10},
    ],
}


def test_pricing_config_sorts_tables_once() -> None:
    cfg = PricingConfig.from_dict(PRICING)
    cfg.validate()
    assert [t.threshold_inches for t in cfg.complexity_tiers] == [12.0, 24.0, math.inf]
    assert [t.quantity for t in cfg.quantity_discounts] == [500, 200, 1]
    assert cfg.material("pvc_laminated").cost_multiplier == 1.5
    assert cfg.material("pvc_laminated").name == ""
    assert cfg.material("unknown") is None
    assert cfg.resolution("dpi_96").ppi == 96.0


def test_pricing_config_from_json(tmp_path: Path) -> None:
    path = tmp_path / "pricing.json"
    path.write_text(json.dumps(PRICING), encoding="utf-8")
    cfg = PricingConfig.from_json(path)
    assert cfg.price_per_square_inch_cents == 15.0


@pytest.mark.parametrize(
    ("patch", "message"),
    [
        ({"pricePerSquareInchCents": None}, "missing required field 'pricePerSquareInchCents'"),
        ({"materials": [{"id": "x"}]}, "missing required field 'costMultiplier'"),
        ({"resolutions": [{"id": "r", "costMultiplier": 1}]}, "missing required field 'ppi'"),
        ({"complexity": {"tiers": [{"multiplier": 1}]}}, "missing required field 'thresholdInches'"),
        ({"complexity": {"tiers": [{"thresholdInches": "lots", "multiplier": 1}]}}, "thresholdInches"),
        ({"quantityDiscounts": [{"quantity": 5}]}, "missing required field 'discount'"),
        ({"materials": "pp_standard"}, "materials must be a list"),
        ({"pricePerSquareInchCents": "cheap"}, "must be a number"),
    ],
)
def test_pricing_config_rejects_malformed_records(patch: dict, message: str) -> None:
    data = dict(PRICING)
    data.update(patch)
    with pytest.raises(ValueError, match=message):
        PricingConfig.from_dict(data)


@pytest.mark.parametrize(
    ("patch", "message"),
    [
        ({"pricePerSquareInchCents": -1}, "pricePerSquareInchCents must be >= 0"),
        ({"resolutions": [{"id": "r", "ppi": 0, "costMultiplier": 1}]}, "ppi must be > 0"),
        ({"quantityDiscounts": [{"quantity": 5, "discount": 1.5}]}, "discount must be in"),
    ],
)
def test_pricing_config_validation(patch: dict, message: str) -> None:
    data = dict(PRICING)
    data.update(patch)
    cfg = PricingConfig.from_dict(data)
    with pytest.raises(ValueError, match=message):
        cfg.validate()
