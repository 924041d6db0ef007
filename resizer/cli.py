from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from .config import ProfileName, ResizeConfig
from .engine import ImageResizer
from .errors import ConfigurationError
from .geometry import Dimension
from .presets import PRESET_NAMES, apply_preset
from .report import build_report, save_report_csv, save_report_json
from .settings import FORMAT_TO_EXT, MetadataStrategy
from .store import DEFAULT_CAPACITY, ArtifactStore
from .tasks import resize_batch


def _parse_dimension(text: str) -> Dimension:
    """
    Accept either:
      - "1024x768"
      - "512" (square)
    """
    try:
        d = Dimension.parse(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a size: {text!r} (expected WxH)") from None
    if not d.is_positive:
        raise argparse.ArgumentTypeError(f"size must be positive: {text!r}")
    return d


def _positive_int(text: str) -> int:
    try:
        n = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from None
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {text!r}")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="resizer",
        description="Image resizer (large / medium / small derivatives into a rotating scratch pool)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log each profile as it runs")
    sub = p.add_subparsers(dest="command", required=True)

    rs = sub.add_parser("resize", help="Resize one or more images")
    rs.add_argument("inputs", nargs="+", help="Image files to process")
    rs.add_argument("--out", required=True, help="Scratch directory holding the slot files")
    rs.add_argument("--capacity", type=_positive_int, default=DEFAULT_CAPACITY, help="Number of slot files (default: 10)")
    rs.add_argument("--preset", choices=PRESET_NAMES, default="default", help="Start from a named preset")

    # Profiles
    for name in ProfileName:
        rs.add_argument(f"--{name.value}", type=_parse_dimension, default=None, metavar="WxH",
                        help=f"Target box for the {name.value} output")
        rs.add_argument(f"--no-{name.value}", action="store_true", help=f"Skip the {name.value} output")

    # Format
    rs.add_argument("--format", choices=("jpeg", "png", "webp"), default=None, help="Output format")
    rs.add_argument("--quality", type=int, default=None, help="JPEG/WebP quality (1-100)")
    rs.add_argument(
        "--metadata",
        choices=[m.value for m in MetadataStrategy],
        default=None,
        help="none: drop EXIF; preserve: copy it; synthesize: copy it or add a timestamp (default)",
    )
    rs.add_argument("--report", action="store_true", help="Write report.json and report.csv next to the slots")

    fl = sub.add_parser("flush", help="Delete every slot file in a scratch directory")
    fl.add_argument("--out", required=True, help="Scratch directory holding the slot files")
    fl.add_argument("--capacity", type=_positive_int, default=DEFAULT_CAPACITY)
    fl.add_argument("--format", choices=("jpeg", "png", "webp"), default="jpeg")

    return p


def _build_config(args: argparse.Namespace) -> ResizeConfig:
    config = apply_preset(args.preset, ResizeConfig())

    for name in ProfileName:
        dim = getattr(args, name.value)
        if dim is not None:
            config.set_dimension(name, dim)
        if getattr(args, f"no_{name.value}"):
            config.set_enabled(name, False)

    enc = config.encode
    if args.format:
        enc = replace(enc, output_format=args.format)
    if args.quality is not None:
        enc = replace(enc, jpeg_quality=int(args.quality), webp_quality=int(args.quality))
    if args.metadata:
        enc = replace(enc, metadata=MetadataStrategy(args.metadata))
    config.with_encode(enc)

    config.validate()
    return config


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "flush":
        store = ArtifactStore(Path(args.out), capacity=args.capacity, extension=FORMAT_TO_EXT[args.format])
        removed = len(store.existing())
        store.flush()
        print(f"Removed {removed} file(s) from {store.directory}")
        return 0

    if args.command == "resize":
        try:
            config = _build_config(args)
        except ConfigurationError as e:
            parser.error(str(e))

        out_dir = Path(args.out)
        store = ArtifactStore(out_dir, capacity=args.capacity, extension=config.encode.extension)
        resizer = ImageResizer(config, store)

        outcomes, summary = resize_batch([Path(p) for p in args.inputs], resizer)

        for outcome in outcomes:
            print(f"\n{outcome.source}")
            for r in outcome:
                if r.ok:
                    print(f"  {r.profile.value:<6} {r.size!s:>11} -> {r.path}")
                else:
                    detail = f" ({r.error})" if r.error else ""
                    print(f"  {r.profile.value:<6} {'-':>11}    {r.reason.value}{detail}")

        # Print summary
        print("\n=== Batch Summary ===")
        print("Sources  :", summary.total_sources)
        print("Written  :", summary.written)
        print("Failed   :", summary.failed)

        if args.report:
            report = build_report(outcomes, summary)

            json_path = out_dir / "report.json"
            save_report_json(report, json_path)

            csv_path = out_dir / "report.csv"
            save_report_csv(report, csv_path)

            print("\nReport written:", json_path)
            print("CSV written   :", csv_path)

        return 1 if summary.failed else 0

    parser.print_help()
    return 2
