"""Write analysis results to CSV and JSON files.

Tables go to CSV through pandas; full result records (including details and
diagnostics) go to JSON via each record's ``to_dict``.
"""

from __future__ import annotations

import json
import os
from typing import Tuple

import pandas as pd

from .reporting import crosstab_frame, observations_frame, regression_table
from .schema import CrossTabResult, RegressionResult, SimulationResult, TestResult
from .simulation import histogram_bins, summarize


def _write_json(record, path: str) -> str:
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(record.to_dict(), handle, indent=2, ensure_ascii=False)
    return path


def save_regression_outputs(
    result: RegressionResult, output_dir: str = "output"
) -> Tuple[str, str, str]:
    """Save a regression's coefficient table, observations and full record.

    Args:
        result (RegressionResult): Fitted model.
        output_dir (str): Directory where outputs are written.

    Returns:
        tuple[str, str, str]: Paths to ``coefficients.csv``,
        ``observations.csv`` and ``regression.json``.
    """
    os.makedirs(output_dir, exist_ok=True)

    coef_path = os.path.join(output_dir, "coefficients.csv")
    obs_path = os.path.join(output_dir, "observations.csv")
    json_path = os.path.join(output_dir, "regression.json")

    regression_table(result).to_csv(coef_path, index=False)
    observations_frame(result).to_csv(obs_path, index=False)
    _write_json(result, json_path)

    print(f"Saved coefficient table to {coef_path}")
    print(f"Saved observations to {obs_path}")
    return coef_path, obs_path, json_path


def save_crosstab_outputs(
    result: CrossTabResult, output_dir: str = "output"
) -> Tuple[str, str]:
    """Save the displayed cross-tab (with totals) and its JSON record."""
    os.makedirs(output_dir, exist_ok=True)

    table_path = os.path.join(output_dir, "crosstab.csv")
    json_path = os.path.join(output_dir, "crosstab.json")

    crosstab_frame(result).to_csv(table_path, index_label="")
    _write_json(result, json_path)

    print(f"Saved cross-tabulation to {table_path}")
    return table_path, json_path


def save_simulation_outputs(
    result: SimulationResult, output_dir: str = "output"
) -> Tuple[str, str, str]:
    """Save raw outcomes, the histogram and a summary record.

    The JSON record omits the raw outcome array, which is in the CSV.
    """
    os.makedirs(output_dir, exist_ok=True)

    values_path = os.path.join(output_dir, "simulation_values.csv")
    hist_path = os.path.join(output_dir, "simulation_histogram.csv")
    json_path = os.path.join(output_dir, "simulation.json")

    pd.DataFrame({"value": result.values}).to_csv(values_path, index=False)
    pd.DataFrame(
        [b.to_dict() for b in histogram_bins(result.values)],
        columns=["start", "end", "count"],
    ).to_csv(hist_path, index=False)

    record = result.to_dict()
    record.pop("values", None)
    record["summary"] = summarize(result.values).to_dict()
    with open(json_path, "w", encoding="utf-8") as handle:
        json.dump(record, handle, indent=2, ensure_ascii=False)

    print(f"Saved simulation outcomes to {values_path}")
    print(f"Saved histogram to {hist_path}")
    return values_path, hist_path, json_path


def save_test_result(result: TestResult, output_dir: str = "output") -> str:
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "hypothesis_test.json")
    _write_json(result, path)
    print(f"Saved test result to {path}")
    return path
