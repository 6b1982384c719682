from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np
from PIL import Image

from .config import PricingConfig, StickerConfig
from .geometry.contour import NoForegroundPixelError, has_transparent_border
from .geometry.offset import KeepOut, Margins, build_bin_shape
from .i18n import text
from .pipeline.cutline import EditorState, UnusableOutlineError, load_vector_design, smart_cutline
from .pipeline.layout import annotate
from .pipeline.nesting import PlacementCandidate, nest, rotation_steps
from .pipeline.pricing import design_dimensions, format_price, price

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sticker cutline, pricing and nesting tools.")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to stickerforge.json config",
    )
    parser.add_argument("--locale", default=None, help="Message locale (en, zh-CN)")
    sub = parser.add_subparsers(dest="command", required=True)

    trace_cmd = sub.add_parser("trace", help="Trace a raster design into a cutline")
    trace_cmd.add_argument("image", type=Path, help="PNG/JPG design")

    price_cmd = sub.add_parser("price", help="Price a vector design")
    price_cmd.add_argument("design", type=Path, help="Design JSON with a 'polygons' list")
    price_cmd.add_argument("--pricing", type=Path, required=True, help="Pricing config JSON")
    price_cmd.add_argument("--quantity", type=int, default=1)
    price_cmd.add_argument("--material", default=None)
    price_cmd.add_argument("--resolution", required=True)
    price_cmd.add_argument("--metric", action="store_true", help="Report dimensions in mm")

    nest_cmd = sub.add_parser("nest", help="Nest designs on a sheet")
    nest_cmd.add_argument("job", type=Path, help="Nesting job JSON")

    args = parser.parse_args(argv)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    try:
        config = _load_config(args.config)
    except FileNotFoundError as exc:
        print(text(args.locale, "error.file_not_found", path=exc.filename or exc), file=sys.stderr)
        return 2
    except ValueError as exc:
        print(text(args.locale, "error.invalid_config", message=exc), file=sys.stderr)
        return 2

    try:
        if args.command == "trace":
            payload = _run_trace(args, config)
        elif args.command == "price":
            payload = _run_price(args, config)
        else:
            payload = _run_nest(args, config)
    except NoForegroundPixelError:
        print(text(args.locale, "error.no_foreground"), file=sys.stderr)
        return 2
    except UnusableOutlineError:
        print(text(args.locale, "error.unusable_outline"), file=sys.stderr)
        return 2
    except FileNotFoundError as exc:
        print(text(args.locale, "error.file_not_found", path=exc.filename or exc), file=sys.stderr)
        return 2
    except ValueError as exc:
        print(text(args.locale, "error.invalid_input", message=exc), file=sys.stderr)
        return 2
    except KeyError as exc:
        print(text(args.locale, "error.invalid_input", message=f"missing field {exc}"), file=sys.stderr)
        return 2
    except TypeError as exc:
        # Wrong JSON shape, e.g. a number where a list of points is expected.
        print(text(args.locale, "error.invalid_input", message=exc), file=sys.stderr)
        return 2

    print(json.dumps(payload, indent=2))
    return 0


def _load_config(path: Path | None) -> StickerConfig:
    if path is None:
        config = StickerConfig.load_default(Path.cwd())
    else:
        config = StickerConfig.from_json(path)
    config.validate()
    return config


def _run_trace(args, config: StickerConfig) -> dict:
    with Image.open(args.image) as image:
        pixels = np.asarray(image.convert("RGBA"))
    logger.info("Image %s: %sx%s", args.image.name, pixels.shape[1], pixels.shape[0])
    if not has_transparent_border(pixels):
        logger.warning(text(args.locale, "warn.opaque_border"))
    state = smart_cutline(EditorState(), pixels, config)
    return {
        "outline": state.current_polygons,
        "cutline": state.cutline,
        "bounds": state.bounds.as_dict(),
    }


def _run_price(args, config: StickerConfig) -> dict:
    pricing = PricingConfig.from_json(args.pricing)
    design = json.loads(args.design.read_text(encoding="utf-8"))
    state = load_vector_design(EditorState(), design.get("polygons", []), config)
    result = price(pricing, args.quantity, args.material, state.bounds, state.cutline, args.resolution)
    payload = {
        "totalCents": result.total_cents,
        "complexityMultiplier": result.complexity_multiplier,
        "formatted": format_price(result.total_cents),
        "bounds": state.bounds.as_dict(),
    }
    resolution = pricing.resolution(args.resolution)
    if resolution is not None and not state.bounds.is_degenerate:
        width, height, unit = design_dimensions(state.bounds, resolution, metric=args.metric)
        payload["dimensions"] = {"width": round(width, 1), "height": round(height, 1), "unit": unit}
        logger.info(
            text(
                args.locale,
                "price.summary",
                quantity=args.quantity,
                width=f"{width:.1f}",
                height=f"{height:.1f}",
                unit=unit,
                total=payload["formatted"],
            )
        )
    return payload


def _run_nest(args, config: StickerConfig) -> dict:
    job = json.loads(args.job.read_text(encoding="utf-8"))
    sheet = job.get("sheet") or {}
    raw_margins = job.get("margins") or {}
    margins = Margins(
        top=float(raw_margins.get("top", 0)),
        right=float(raw_margins.get("right", 0)),
        bottom=float(raw_margins.get("bottom", 0)),
        left=float(raw_margins.get("left", 0)),
    )
    keep_outs = [
        KeepOut(float(k["x"]), float(k["y"]), float(k["width"]), float(k["height"]))
        for k in job.get("keepOuts", [])
    ]
    bin_shape = build_bin_shape(
        float(sheet.get("width", 0)),
        float(sheet.get("height", 0)),
        margins,
        keep_outs,
        scale=config.clipper_scale,
    )
    default_rotations = rotation_steps(config.nest_rotation_steps)
    candidates = [
        PlacementCandidate(
            design_id=str(design["id"]),
            polygons=[[(float(x), float(y)) for x, y in ring] for ring in design["polygons"]],
            rotations=tuple(float(r) for r in design.get("rotations", default_rotations)),
        )
        for design in job.get("designs", [])
    ]
    spacing = float(job.get("spacing", config.nest_spacing))
    result = nest(candidates, bin_shape, spacing=spacing, scale=config.clipper_scale)
    if result.unplaced:
        logger.warning(
            text(args.locale, "nest.unplaced", count=len(result.unplaced), ids=", ".join(result.unplaced))
        )
    payload = {
        "placements": [
            {
                "designId": p.design_id,
                "translation": {"dx": p.dx, "dy": p.dy},
                "rotationDegrees": p.rotation_degrees,
            }
            for p in result.placements
        ],
        "unplaced": list(result.unplaced),
        "utilization": result.utilization,
    }
    markers = bool(job.get("alignmentMarkers", False))
    job_marking = bool(job.get("jobMarkings", False))
    if markers or job_marking:
        annotations = annotate(
            result,
            bin_shape,
            markers=markers,
            job_marking=job_marking,
            marker_size=config.marker_size,
            order_count=len(candidates),
        )
        payload["annotations"] = {
            "markers": [list(map(list, segment)) for segment in annotations.markers],
            "labels": [{"x": a.x, "y": a.y, "text": a.text} for a in annotations.labels],
        }
    return payload


if __name__ == "__main__":
    raise SystemExit(main())
