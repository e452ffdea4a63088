"""Insight generator — descriptive statistics over a chosen numeric column."""

import math
from enum import Enum
from typing import Any

import pandas as pd

from app.application.services.chart_transformer import column_values
from app.domain.schemas.analytics import AxisSelection, Insights

UPWARD_FACTOR = 1.1
DOWNWARD_FACTOR = 0.9
OUTLIER_STD_DEVIATIONS = 2


class Trend(str, Enum):
    UPWARD = "upward"
    DOWNWARD = "downward"
    STABLE = "stable"


TREND_MESSAGES = {
    Trend.UPWARD: "Upward trend detected in the data",
    Trend.DOWNWARD: "Downward trend detected in the data",
    Trend.STABLE: "Relatively stable trend in the data",
}


def classify_trend(values: list[float]) -> Trend:
    """Compare the mean of the second half against the first (split at len // 2)."""
    if len(values) < 2:
        raise ValueError("Trend needs at least two values")
    midpoint = len(values) // 2
    first_mean = sum(values[:midpoint]) / midpoint
    second_mean = sum(values[midpoint:]) / (len(values) - midpoint)

    if second_mean > first_mean * UPWARD_FACTOR:
        return Trend.UPWARD
    if second_mean < first_mean * DOWNWARD_FACTOR:
        return Trend.DOWNWARD
    return Trend.STABLE


def find_outlier_positions(values: list[float]) -> list[int]:
    """
    Indexes of values at least 2 population standard deviations from the mean.

    The bound is inclusive within float tolerance: with five points a single
    spike sits exactly 2 deviations out (the z-score ceiling is sqrt(n - 1)).
    """
    series = pd.Series(values, dtype="float64")
    std = series.std(ddof=0)
    if not std:
        return []
    limit = OUTLIER_STD_DEVIATIONS * std
    deviations = (series - series.mean()).abs()
    return [
        position
        for position, deviation in enumerate(deviations)
        if deviation > limit or math.isclose(deviation, limit, rel_tol=1e-9)
    ]


def generate_insights(
    records: list[dict[str, Any]],
    x_axis: AxisSelection,
    y_axis: AxisSelection,
) -> Insights:
    """
    Summary, trend and outliers for the Y column.
    Callers must reject empty record sets before getting here.
    """
    if not records:
        raise ValueError("Insights require at least one record")

    values = column_values(records, y_axis.column)
    series = pd.Series(values, dtype="float64")

    insights = Insights(
        summary=(
            f"Dataset contains {len(records)} records. "
            f"{y_axis.column} ranges from {series.min():.2f} to {series.max():.2f} "
            f"with an average of {series.mean():.2f}."
        ),
    )

    if len(values) > 1:
        insights.trends.append(TREND_MESSAGES[classify_trend(values)])

    insights.outliers = [
        f"{records[i].get(x_axis.column)}: {records[i].get(y_axis.column)}"
        for i in find_outlier_positions(values)
    ]
    return insights
