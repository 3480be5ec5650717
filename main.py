#!/usr/bin/env python3
"""
Command-line front end for the statistics engine.

Examples:
    python main.py regress data.csv --y price --x sqft --x beds
    python main.py test data.csv two-sample --var score --group arm
    python main.py crosstab data.csv --rows region --cols product --display row_pct
    python main.py simulate --preset "Sum of Dice" --seed 7
    python main.py simulate --var "X:normal:mean=5,sd=1" --expr "X * 2"
"""

import argparse
import logging
import os
import sys
import time

import pandas as pd

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

from statcore.analysis import (
    TEST_TYPES,
    run_crosstab,
    run_hypothesis_test,
    run_monte_carlo,
    run_regression,
)
from statcore.config import DEFAULT_CONFIG, PVALUE_METHODS
from statcore.output import (
    save_crosstab_outputs,
    save_regression_outputs,
    save_simulation_outputs,
    save_test_result,
)
from statcore.plotting import (
    plot_crosstab_heatmap,
    plot_regression_diagnostics,
    plot_simulation,
)
from statcore.reporting import (
    crosstab_frame,
    format_regression_report,
    format_simulation_report,
    format_test_report,
)
from statcore.schema import Failure
from statcore.simulation import get_preset, summarize
from statcore.stats.crosstab import AGGREGATIONS, DISPLAY_MODES
from statcore.table import Table


def load_csv(path: str) -> Table:
    """Read a CSV keeping every cell as text; coercion happens per analysis."""
    frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    logging.info("Loaded %s: %d rows, %d columns", path, len(frame), len(frame.columns))
    return Table.from_frame(frame)


def parse_variable_spec(spec: str) -> dict:
    """Parse ``NAME:distribution[:key=value,...]`` into a variable dict."""
    parts = spec.split(":", 2)
    if len(parts) < 2:
        raise argparse.ArgumentTypeError(f"Expected NAME:distribution[:params], got '{spec}'")
    params = {}
    if len(parts) == 3 and parts[2]:
        for item in parts[2].split(","):
            key, _, value = item.partition("=")
            try:
                params[key.strip()] = float(value)
            except ValueError:
                raise argparse.ArgumentTypeError(f"Bad parameter '{item}' in '{spec}'")
    return {"name": parts[0].strip(), "distribution": parts[1].strip().lower(), "params": params}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Regression, tests, cross-tabs and Monte Carlo.")
    parser.add_argument("--output-dir", help="Write CSV/JSON/PNG outputs to this directory")
    parser.add_argument(
        "--pvalue-method",
        choices=PVALUE_METHODS,
        default=DEFAULT_CONFIG.pvalue_method,
        help="Student t p-values ('exact') or the normal blend approximation",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    reg = sub.add_parser("regress", help="Ordinary least squares regression")
    reg.add_argument("csv")
    reg.add_argument("--y", required=True, help="Dependent variable")
    reg.add_argument("--x", action="append", required=True, help="Predictor (repeatable)")

    test = sub.add_parser("test", help="Hypothesis test")
    test.add_argument("csv")
    test.add_argument("kind", choices=TEST_TYPES)
    test.add_argument("--var", required=True)
    test.add_argument("--var2")
    test.add_argument("--group")
    test.add_argument("--mu0", type=float, default=0.0)
    test.add_argument("--alternative", choices=("two-sided", "less", "greater"), default="two-sided")

    xt = sub.add_parser("crosstab", help="Cross-tabulation")
    xt.add_argument("csv")
    xt.add_argument("--rows", required=True)
    xt.add_argument("--cols", required=True)
    xt.add_argument("--values")
    xt.add_argument("--aggregation", choices=tuple(AGGREGATIONS), default="count")
    xt.add_argument("--display", choices=DISPLAY_MODES, default="counts")

    sim = sub.add_parser("simulate", help="Monte Carlo simulation")
    sim.add_argument("--preset", help="Name of a built-in scenario")
    sim.add_argument("--var", action="append", type=parse_variable_spec, default=[])
    sim.add_argument("--expr", help="Model expression over the variable names")
    sim.add_argument("--iterations", type=int)
    sim.add_argument("--seed", type=int)
    return parser


def _run(args, config):
    if args.command == "regress":
        result = run_regression(load_csv(args.csv), args.y, args.x, config=config)
        if isinstance(result, Failure):
            return result
        print(format_regression_report(result))
        if args.output_dir:
            save_regression_outputs(result, args.output_dir)
            plot_regression_diagnostics(
                result, os.path.join(args.output_dir, "regression_diagnostics.png")
            )
        return result

    if args.command == "test":
        result = run_hypothesis_test(
            load_csv(args.csv),
            args.kind,
            variable=args.var,
            variable2=args.var2,
            group=args.group,
            mu0=args.mu0,
            alternative=args.alternative,
            config=config,
        )
        if isinstance(result, Failure):
            return result
        print(format_test_report(result, config.alpha))
        if args.output_dir:
            save_test_result(result, args.output_dir)
        return result

    if args.command == "crosstab":
        result = run_crosstab(
            load_csv(args.csv), args.rows, args.cols, args.values, args.aggregation, args.display
        )
        if isinstance(result, Failure):
            return result
        print(crosstab_frame(result).to_string())
        if result.chi_square is not None:
            block = result.chi_square
            print(
                f"\nχ² = {block.statistic:.3f}, df = {block.df}, "
                f"p = {block.p_value:.4f}, Cramer's V = {block.cramers_v:.3f}"
            )
        if args.output_dir:
            save_crosstab_outputs(result, args.output_dir)
            plot_crosstab_heatmap(result, os.path.join(args.output_dir, "crosstab.png"))
        return result

    if args.preset:
        try:
            preset = get_preset(args.preset)
        except KeyError as exc:
            return Failure(error=exc.args[0], kind="invalid_selection")
        variables, expression = list(preset.variables), preset.expression
        iterations = preset.iterations if args.iterations is None else args.iterations
    else:
        variables, expression = args.var, args.expr or ""
        iterations = 10000 if args.iterations is None else args.iterations
    result = run_monte_carlo(
        variables, expression, iterations, seed=args.seed, config=config
    )
    if isinstance(result, Failure):
        return result
    for message in result.diagnostics:
        print(f"warning: {message}")
    print(format_simulation_report(summarize(result.values)))
    if args.output_dir:
        save_simulation_outputs(result, args.output_dir)
        plot_simulation(result, os.path.join(args.output_dir, "simulation.png"))
    return result


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = DEFAULT_CONFIG.replace(pvalue_method=args.pvalue_method)

    start_time = time.time()
    logging.info("Running %s", args.command)
    result = _run(args, config)
    if isinstance(result, Failure):
        logging.error("%s failed (%s): %s", args.command, result.kind, result.error)
        return 1
    logging.info("Completed in %.2f seconds", time.time() - start_time)
    return 0


if __name__ == "__main__":
    sys.exit(main())
