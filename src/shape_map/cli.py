"""Command-line interface for seeding shape and size functions of time."""

import argparse
import logging
from pathlib import Path

import numpy as np

from src import config
from src.functions_of_time import save_functions_of_time

from .derive import make_shape_and_size_functions_of_time
from .options import ObjectLabel, load_shape_map_options


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for shape/size map seeding."""
    parser = argparse.ArgumentParser(
        prog="python -m src.shape_map",
        description="Derive initial shape and size functions of time from shape map options",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--options",
        type=Path,
        required=True,
        help="YAML file with LMax, InitialValues and SizeInitialValues",
    )
    parser.add_argument(
        "--inner-radius",
        type=float,
        required=True,
        help="Inner coordinate radius of the object's excision surface",
    )
    parser.add_argument(
        "--label",
        choices=["A", "B", "None"],
        default="None",
        help="Object label appended to the map names",
    )
    parser.add_argument(
        "--transition-ends-at-cube-supported",
        action="store_true",
        help="Require and read the TransitionEndsAtCube option",
    )
    parser.add_argument(
        "--initial-time",
        type=float,
        default=0.0,
        help="Time at which the functions of time start",
    )
    parser.add_argument(
        "--expiration-time",
        type=float,
        default=np.inf,
        help="Time until which the seeded functions of time are valid",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=config.DEFAULT_OUTPUT_DIR / "initial_functions_of_time.npz",
        help="Output NPZ checkpoint for the functions of time",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable DEBUG-level logging",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for shape/size map seeding."""
    args = parse_args(argv)
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.inner_radius <= 0.0:
        logging.error("--inner-radius must be positive")
        return 1

    if args.expiration_time < args.initial_time:
        logging.error("--expiration-time must be >= --initial-time")
        return 1

    try:
        options = load_shape_map_options(
            args.options,
            object_label=ObjectLabel.NONE if args.label == "None" else args.label,
            include_transition_ends_at_cube=args.transition_ends_at_cube_supported,
        )
        functions = make_shape_and_size_functions_of_time(
            options,
            inner_radius=args.inner_radius,
            initial_time=args.initial_time,
            expiration_time=args.expiration_time,
        )
    except (OSError, KeyError, ValueError) as exc:
        logging.exception("Failed to derive initial functions of time: %s", exc)
        return 1

    try:
        save_functions_of_time(args.output, functions)
    except (OSError, ValueError) as exc:
        logging.exception("Failed to save functions of time: %s", exc)
        return 1

    shape_value = functions[options.name()].value(args.initial_time)[0]
    size_value = functions[options.size_name()].value(args.initial_time)[0]

    print("\n" + "=" * 60)
    print("Shape/Size Map Initial Data Summary")
    print("=" * 60)
    print(f"Shape map       : {options.name()} (l_max = {options.expansion_order})")
    print(f"Initial values  : {type(options.resolved_initial_values()).__name__}")
    print(f"Coefficients    : {shape_value.size}")
    print(f"Max |coef|      : {np.max(np.abs(shape_value)):.6e}")
    size_source = "Auto" if options.initial_size_values is None else "explicit"
    print(f"Size map        : {options.size_name()} = {size_value[0]:.6e} ({size_source})")
    if options.transition_ends_at_cube is not None:
        print(f"Transition cube : {options.transition_ends_at_cube}")
    print(f"Valid for       : [{args.initial_time}, {args.expiration_time}]")
    print(f"\nSaved to: {args.output}")
    print("=" * 60)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
