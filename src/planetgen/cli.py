"""Command-line interface for planet generation."""

import argparse
import logging
import time
from pathlib import Path

import structlog

from .config import PlanetConfig, list_presets, load_config


def parse_resolution(value: str) -> tuple[int, int]:
    """Parse ``WxH`` into (width, height), requiring a 2:1 grid."""
    parts = value.lower().split("x")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"Invalid resolution '{value}' (expected WxH)")
    try:
        width, height = int(parts[0]), int(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid resolution '{value}' (expected WxH)") from None
    if width <= 0 or height <= 0 or width != 2 * height:
        raise argparse.ArgumentTypeError(
            f"Resolution must be a positive 2:1 grid, got {width}x{height}"
        )
    return width, height


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a procedural planet and export its surface maps"
    )
    parser.add_argument("--seed", type=int, default=None, help="Generation seed")
    parser.add_argument(
        "--resolution",
        type=parse_resolution,
        default=None,
        help="Grid size as WxH, must be 2:1 (default: 1024x512)",
    )
    parser.add_argument(
        "--preset",
        type=str,
        default=None,
        choices=list_presets(),
        help="Named preset to start from",
    )
    parser.add_argument(
        "--config", type=str, default=None, help="TOML config file (overrides preset)"
    )
    parser.add_argument(
        "--export",
        type=str,
        default="albedo,height,normal",
        help="Comma-separated maps to write, or 'all' (default: albedo,height,normal)",
    )
    parser.add_argument(
        "--out", "-o", type=str, default="planet_out", help="Output directory for maps"
    )
    parser.add_argument(
        "--save", type=str, default=None, help="Also save all grids to this .npz file"
    )
    parser.add_argument("--workers", type=int, default=None, help="Row-band worker threads")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return parser


def resolve_config(args: argparse.Namespace) -> PlanetConfig:
    """Combine config file, preset, and flag overrides (flags win)."""
    if args.config:
        config = load_config(Path(args.config), preset=args.preset)
    elif args.preset:
        config = PlanetConfig.from_preset(args.preset)
    else:
        config = PlanetConfig()

    overrides: dict[str, object] = {}
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.resolution is not None:
        overrides["width"], overrides["height"] = args.resolution
    if args.workers is not None:
        overrides["workers"] = args.workers
    if overrides:
        config = PlanetConfig.model_validate({**config.model_dump(), **overrides})
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for planet generation."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    from .export import export_maps, parse_map_list
    from .generator import generate_planet
    from .persistence import save_planet

    try:
        config = resolve_config(args)
        maps = parse_map_list(args.export)
    except FileNotFoundError:
        logger.error("config_not_found", path=args.config)
        raise SystemExit(1)
    except ValueError as e:
        # ConfigurationError and pydantic.ValidationError are both ValueErrors
        parser.error(str(e))

    print(f"Generating {config.width}x{config.height} planet with seed {config.seed}")
    if config.preset:
        print(f"Preset: {config.preset}")
    print()

    start_time = time.time()
    result = generate_planet(config)
    gen_time = time.time() - start_time

    print()
    print(f"Generation complete in {gen_time:.1f}s")

    out_dir = Path(args.out)
    written = export_maps(result, out_dir, maps)
    print(f"Wrote {len(written)} map(s) to {out_dir}")

    if args.save:
        save_path = Path(args.save)
        save_planet(save_path, result)
        print(f"Saved to {save_path}")

    if result.validation is not None and not result.validation.passed:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
