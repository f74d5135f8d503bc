#!/usr/bin/env python3
from __future__ import annotations
import argparse, asyncio, json, logging, random, sys

from libs.common.config import CFG
from libs.common.exceptions import NOT_FOUND_MESSAGE
from libs.common.settings_store import MemorySettingsStore
from libs.geo.types import Coordinate, format_radius, radius_step_index, snap_radius
from libs.integration.location_pipeline import Locator, load_config

def _coord(text: str) -> Coordinate:
    c = Coordinate.parse(text)
    if c is None:
        raise argparse.ArgumentTypeError(f"expected 'lat,lng' within range, got {text!r}")
    return c

def _emit(obj: dict) -> None:
    sys.stdout.write(json.dumps(obj, ensure_ascii=False) + "\n")

async def _run(args) -> int:
    cfg = load_config(args.config)
    async with Locator(cfg, settings=MemorySettingsStore()) as loc:
        if args.cmd == "classify":
            c = loc.resolver.classify(args.text)
            _emit({"kind": c.kind.value, "needs_network": c.kind.needs_network,
                   "coordinate": c.coordinate.to_string() if c.coordinate else None})
            return 0
        if args.cmd == "resolve":
            res = await loc.resolver.resolve(args.text)
            if res is None:
                _emit({"found": False, "message": NOT_FOUND_MESSAGE})
                return 1
            _emit({"found": True, "coordinate": res.coordinate.to_string(), "label": res.label, "source": res.source})
            return 0
        if args.cmd == "search":
            results = await loc.resolver.search(args.query)
            _emit({"results": [{"label": s.label, "coordinate": s.coordinate.to_string()} for s in results]})
            return 0 if results else 1
        if args.cmd == "city":
            coord = await loc.resolver.geocode_city(args.name)
            if coord is None:
                _emit({"found": False, "message": NOT_FOUND_MESSAGE})
                return 1
            _emit({"found": True, "coordinate": coord.to_string()})
            return 0
        if args.cmd == "landmark":
            loc.rng = random.Random(args.seed) if args.seed is not None else None
            editor = loc.editor(args.exact.to_string(), str(args.radius),
                                args.landmark.to_string() if args.landmark else None)
            if args.move:
                editor.place_exact(args.move, source="cli")
            saved = editor.save()
            saved["bearing_deg"] = round(editor.offset.bearing_deg, 3) if editor.offset else None
            saved["radius_label"] = editor.radius_label
            _emit(saved)
            return 0
    raise SystemExit(f"unknown command {args.cmd}")

def main(argv=None) -> int:
    p = argparse.ArgumentParser(prog="locate", description="Resolve location input and compute public landmarks")
    p.add_argument("--config", default="config/locator.yml")
    p.add_argument("--log-level", default=CFG.LOG_LEVEL)
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("classify", help="Show how input would be resolved (no network)")
    sp.add_argument("text")
    sp = sub.add_parser("resolve", help="Resolve coordinates, a map link or a place name")
    sp.add_argument("text")
    sp = sub.add_parser("search", help="List place suggestions for free text")
    sp.add_argument("query")
    sp = sub.add_parser("city", help="Geocode a city name for map centering")
    sp.add_argument("name")
    sp = sub.add_parser("landmark", help="Compute the public landmark for an exact point")
    sp.add_argument("--exact", type=_coord, required=True)
    sp.add_argument("--landmark", type=_coord, help="Previously persisted landmark to preserve")
    sp.add_argument("--move", type=_coord, help="Move the exact point, keeping the offset")
    sp.add_argument("--radius", type=float, default=0)
    sp.add_argument("--seed", type=int)
    sp = sub.add_parser("snap", help="Snap an accuracy radius to the step ladder")
    sp.add_argument("meters", type=float)

    args = p.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format='%(message)s', stream=sys.stderr)

    if args.cmd == "snap":
        snapped = snap_radius(args.meters)
        _emit({"radius_m": snapped, "step": radius_step_index(args.meters), "label": format_radius(snapped)})
        return 0
    return asyncio.run(_run(args))

if __name__ == "__main__":
    sys.exit(main())
