"""
Command-line interface for arcellipse.

Provides commands for running a search and writing the default config.
"""

import argparse
import sys

from arcellipse.config import load_config, save_default_config
from arcellipse.models import Objective, SearchRequest
from arcellipse.tracer import configure_tracer, get_tracer


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Arc Ellipse: find a small ellipse that matches a large circular arc within tolerance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Search command
    search_parser = subparsers.add_parser("search", help="Run the ellipse grid search")
    search_parser.add_argument("--request", default=None, help="YAML/JSON request file")
    search_parser.add_argument("--radius", "-r", type=float, default=None, help="Arc radius R")
    shape = search_parser.add_mutually_exclusive_group()
    shape.add_argument("--angle", "-a", type=float, default=None, help="Central angle in degrees (0, 180]")
    shape.add_argument("--chord", type=float, default=None, help="Chord length, instead of the angle")
    search_parser.add_argument("--tolerance", "-e", type=float, default=None, help="Allowed radial error")
    search_parser.add_argument("--steps-d", type=int, default=None, help="Grid steps for the quarter point")
    search_parser.add_argument("--steps-d1", type=int, default=None, help="Grid steps for the top point")
    search_parser.add_argument("--steps-d2", type=int, default=None, help="Grid steps for the endpoint")
    search_parser.add_argument("--error-steps", type=int, default=None, help="Error samples per attempt")
    search_parser.add_argument("--prune", action="store_true", default=None,
                               help="Skip cells that cannot beat the best accepted attempt")
    search_parser.add_argument("--force-p-zero", action="store_true", default=None,
                               help="Keep the top anchor on the arc")
    search_parser.add_argument("--force-r-zero", action="store_true", default=None,
                               help="Keep the endpoint anchor on the arc")
    search_parser.add_argument(
        "--objective",
        default=None,
        choices=[o.value for o in Objective],
        help="Selection objective",
    )
    search_parser.add_argument("--workers", type=int, default=None, help="Worker processes")
    search_parser.add_argument("--out", "-o", default=None, help="Output directory for result files")
    search_parser.add_argument("--config", "-c", default=None, help="Path to YAML configuration file")
    search_parser.add_argument("--trace", action="store_true", help="Enable runtime tracing")
    search_parser.add_argument(
        "--trace-level",
        default="INFO",
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    search_parser.add_argument("--trace-file", default=None, help="Path to write trace logs")
    search_parser.add_argument("--trace-json", action="store_true", help="Enable JSON trace output")

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="arcellipse_config.yaml",
        help="Output path for config file",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "search":
        return handle_search(args)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def build_request(args, config):
    """
    Assemble a SearchRequest from a request file, CLI flags and config defaults.

    CLI flags win over the request file, which wins over the config.
    """
    from arcellipse.geometry.anchors import angle_from_chord
    from arcellipse.io.save_artifacts import load_request

    defaults = config.search
    data = {
        "steps_d": defaults.steps_d,
        "steps_d1": defaults.steps_d1,
        "steps_d2": defaults.steps_d2,
        "error_sample_steps": defaults.error_sample_steps,
        "prune_worse_than_best": defaults.prune_worse_than_best,
        "force_anchor_p_zero": defaults.force_anchor_p_zero,
        "force_anchor_r_zero": defaults.force_anchor_r_zero,
        "objective": defaults.objective,
    }

    if args.request:
        data.update(load_request(args.request).model_dump())

    overrides = {
        "radius": args.radius,
        "central_angle_deg": args.angle,
        "tolerance": args.tolerance,
        "steps_d": args.steps_d,
        "steps_d1": args.steps_d1,
        "steps_d2": args.steps_d2,
        "error_sample_steps": args.error_steps,
        "prune_worse_than_best": args.prune,
        "force_anchor_p_zero": args.force_p_zero,
        "force_anchor_r_zero": args.force_r_zero,
        "objective": args.objective,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})

    if args.chord is not None:
        if "radius" not in data:
            raise ValueError("--chord needs --radius")
        data["central_angle_deg"] = angle_from_chord(data["radius"], args.chord)

    missing = [k for k in ("radius", "central_angle_deg", "tolerance") if k not in data]
    if missing:
        raise ValueError(f"Missing required search parameters: {', '.join(missing)}")

    return SearchRequest.model_validate(data)


def handle_search(args):
    """Handle the search command."""
    configure_tracer(
        enabled=args.trace,
        level=args.trace_level,
        file_path=args.trace_file,
        json_output=args.trace_json,
    )

    tracer = get_tracer()

    try:
        config = load_config(args.config)
        if args.workers is not None:
            config.search.workers = args.workers

        request = build_request(args, config)

        with tracer.span("cli_search", module="cli", request=request) as search:
            if args.out:
                from arcellipse.pipeline import run_pipeline
                result = run_pipeline(request, args.out, config=config)
            else:
                from arcellipse.search.engine import run_search
                result = run_search(request, numerics=config.numerics, workers=config.search.workers)
            search.note(solution=result.has_solution)

    except Exception as e:
        tracer.event(f"Search failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1

    from arcellipse.export.report import format_summary
    print(format_summary(request, result))

    if args.out:
        print(f"Outputs saved to: {args.out}/")
        print("  - result.json")
        if result.has_solution:
            print("  - best_error_series.json")
        print("  - search_summary.txt")

    return 0 if result.has_solution else 1


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
