"""Command line entry point: ralgen DESCRIPTION -o OUTPUT [options]."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from ralgen.core.exceptions import RalgenError
from ralgen.generator import generate_from_file
from ralgen.utils.config_loader import load_config
from ralgen.utils.logger import setup_logging

logger = logging.getLogger("ralgen")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ralgen",
        description="Generate Rust register access modules from a device description.",
    )
    parser.add_argument(
        "description",
        type=Path,
        help="Device description (.svd/.xml or .yaml/.yml)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        required=True,
        help="Output directory; <output>/<device>/ is replaced",
    )
    parser.add_argument("--config", type=Path, help="YAML generator config")

    # Overrides for config file values
    parser.add_argument("--address-size", choices=["32", "64"], help="Device address width")
    parser.add_argument(
        "--ignore",
        nargs="+",
        metavar="NAME",
        help="Peripheral or instance names to skip",
    )
    parser.add_argument(
        "--arch-crate",
        help="Module path providing interrupt::free (default: crate::arch)",
    )
    parser.add_argument("--jobs", type=int, help="Worker threads for rendering")

    parser.add_argument(
        "--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    parser.add_argument("--quiet", action="store_true", help="Reduce console output")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(level=args.log_level, quiet=args.quiet)

    try:
        config = load_config(args.config)
        if args.address_size is not None:
            config = config.with_address_size(args.address_size)
        if args.ignore is not None:
            config = config.with_ignore(args.ignore)
        if args.arch_crate is not None:
            config = config.with_arch_crate(args.arch_crate)
        if args.jobs is not None:
            config = config.with_jobs(args.jobs)

        result = generate_from_file(args.description, args.output, config)
    except RalgenError as exc:
        logger.error("%s", exc)
        return 1

    logger.info(
        "Generated %d peripherals and %d instances in %s",
        len(result.peripheral_modules),
        len(result.instance_modules),
        result.device_dir,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
