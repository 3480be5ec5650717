import json
import os

import pandas as pd

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
from statcore.sampling import Normal, make_rng
from statcore.simulation import run_simulation
from statcore.stats.crosstab import cross_tabulate
from statcore.stats.hypothesis import one_sample_t_test
from statcore.stats.regression import ols_regression


def make_regression():
    df = pd.DataFrame({"x": [1, 2, 3, 4, 5, 6], "y": [1.8, 4.1, 6.0, 8.3, 9.7, 12.2]})
    return ols_regression(df, "y", ["x"])


def make_crosstab():
    rows = [{"g": g, "h": h} for g, h in zip("aabbab", "xyxyyx")]
    return cross_tabulate((["g", "h"], rows), "g", "h", display="row_pct")


def test_save_regression_outputs(tmp_path):
    coef_path, obs_path, json_path = save_regression_outputs(make_regression(), str(tmp_path))
    assert pd.read_csv(coef_path)["Variable"].tolist() == ["(Intercept)", "x"]
    assert len(pd.read_csv(obs_path)) == 6
    with open(json_path, encoding="utf-8") as handle:
        assert json.load(handle)["n_obs"] == 6


def test_save_crosstab_and_test_outputs(tmp_path):
    table_path, json_path = save_crosstab_outputs(make_crosstab(), str(tmp_path))
    frame = pd.read_csv(table_path, index_col=0)
    assert frame.loc["Total", "Total"] == 6
    with open(json_path, encoding="utf-8") as handle:
        assert json.load(handle)["display"] == "row_pct"
    path = save_test_result(one_sample_t_test([1.0, 2.0, 4.0]), str(tmp_path))
    with open(path, encoding="utf-8") as handle:
        assert json.load(handle)["details"]["n"] == 3


def test_save_simulation_outputs(tmp_path):
    result = run_simulation([Normal("X")], "X", 300, rng=make_rng(2))
    values_path, hist_path, json_path = save_simulation_outputs(result, str(tmp_path))
    assert len(pd.read_csv(values_path)) == 300
    assert pd.read_csv(hist_path)["count"].sum() == 300
    with open(json_path, encoding="utf-8") as handle:
        record = json.load(handle)
    assert "values" not in record
    assert record["summary"]["n"] == 300
    assert record["variables"][0]["distribution"] == "normal"


def test_plots_are_written(tmp_path):
    paths = [
        plot_regression_diagnostics(make_regression(), str(tmp_path / "reg.png")),
        plot_simulation(
            run_simulation([Normal("X")], "X", 500, rng=make_rng(1)),
            str(tmp_path / "sim.png"),
        ),
        plot_crosstab_heatmap(make_crosstab(), str(tmp_path / "nested" / "xt.png")),
    ]
    for path in paths:
        assert os.path.exists(path)
        assert os.path.getsize(path) > 0
