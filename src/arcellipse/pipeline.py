"""
Search pipeline for arcellipse.

Runs one search and writes its artifacts to an output directory.
"""

import os

from arcellipse.config import load_config
from arcellipse.export.report import format_summary
from arcellipse.geometry.arc_sampler import mirror_series
from arcellipse.io.save_artifacts import ensure_dir, save_json, save_text
from arcellipse.search.engine import run_search
from arcellipse.tracer import get_tracer, trace


@trace(label="run_pipeline")
def run_pipeline(request, out_dir, config=None, config_path=None):
    """
    Run the search and save its outputs.

    Args:
        request: SearchRequest
        out_dir: output directory
        config: AppConfig object (optional)
        config_path: path to YAML config file (optional)

    Returns:
        SearchResult

    Writes:
        result.json: full result, every attempt included
        best_error_series.json: mirrored full-span curve of the best attempt
        search_summary.txt: human-readable report
    """
    tracer = get_tracer()

    if config is None:
        config = load_config(config_path)

    ensure_dir(out_dir)

    with tracer.span("search", module="pipeline") as search:
        result = run_search(
            request,
            numerics=config.numerics,
            workers=config.search.workers,
        )
        search.note(result=result)

    indent = config.output.json_indent

    with tracer.span("save_outputs", module="pipeline", out_dir=out_dir) as saving:
        written = ["result.json"]
        save_json(
            {"request": request.model_dump(mode="json"), "result": result.model_dump(mode="json")},
            os.path.join(out_dir, "result.json"),
            indent=indent,
        )

        if config.output.write_mirrored_series and result.best_attempt is not None:
            full_series = mirror_series(result.error_series)
            save_json(
                [s.model_dump() for s in full_series],
                os.path.join(out_dir, "best_error_series.json"),
                indent=indent,
            )
            written.append("best_error_series.json")

        if config.output.write_summary:
            save_text(format_summary(request, result), os.path.join(out_dir, "search_summary.txt"))
            written.append("search_summary.txt")

        saving.note(files=",".join(written))

    tracer.event(f"Pipeline complete: {len(result.attempts)} attempts, solution={result.has_solution}")

    return result
