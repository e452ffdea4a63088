"""Chart data transformer — records + axis selection → chart-ready series.

The chart-type tag is resolved once into a ChartStrategy:
- DEFAULT: labels from X, one numeric series from Y
- THREE_D: a Z axis is selected; series of {x, y, z} points
- PROPORTIONAL: pie/doughnut; Y summed per distinct X value
"""

import math
import re
from enum import Enum
from typing import Any, Iterable, Optional

from app.domain.schemas.analytics import AxisSelection, ChartData, ChartDataset, ChartType, Point3D

DEFAULT_SERIES_COLOR = "#3498db"

PROPORTIONAL_PALETTE = [
    "#3498db", "#e74c3c", "#2ecc71", "#f39c12", "#9b59b6",
    "#1abc9c", "#34495e", "#e67e22", "#95a5a6", "#9c88ff",
]

PROPORTIONAL_TYPES = {ChartType.PIE.value, ChartType.DOUGHNUT.value}

Record = dict[str, Any]


class ChartStrategy(str, Enum):
    DEFAULT = "default"
    THREE_D = "3d"
    PROPORTIONAL = "proportional"


# Longest leading decimal number, ASCII digits only ("12abc" -> 12, "1,234" -> 1)
NUMERIC_PREFIX = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def _parse_number(value: Any) -> Optional[float]:
    """Finite float for a cell, or None when it has no numeric reading."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = NUMERIC_PREFIX.match(str(value).strip())
        if match is None:
            return None
        number = float(match.group())
    return number if math.isfinite(number) else None


def to_number(value: Any) -> float:
    """Parse the leading number of a cell; anything without one becomes 0.0."""
    number = _parse_number(value)
    return 0.0 if number is None else number


def is_numeric(value: Any) -> bool:
    return _parse_number(value) is not None


def resolve_strategy(chart_type: str, z_axis: Optional[AxisSelection] = None) -> ChartStrategy:
    """Pick the transform for a chart type. Proportional types ignore a Z axis."""
    chart_type = chart_type.value if isinstance(chart_type, ChartType) else str(chart_type)
    if chart_type in PROPORTIONAL_TYPES:
        return ChartStrategy.PROPORTIONAL
    if z_axis is not None and z_axis.column:
        return ChartStrategy.THREE_D
    return ChartStrategy.DEFAULT


def column_values(records: Iterable[Record], column: str) -> list[float]:
    return [to_number(record.get(column)) for record in records]


def _series(label: str, data: list, colors: Optional[list[str]], fallback: list[str]) -> ChartDataset:
    background = list(colors) if colors else list(fallback)
    return ChartDataset(
        label=label,
        data=data,
        background_color=background,
        border_color=colors[0] if colors else DEFAULT_SERIES_COLOR,
        border_width=2,
    )


def _default_chart(records, x_axis, y_axis, colors) -> ChartData:
    labels = [record.get(x_axis.column) for record in records]
    values = column_values(records, y_axis.column)
    return ChartData(
        labels=labels,
        datasets=[_series(y_axis.display_label, values, colors, [DEFAULT_SERIES_COLOR])],
    )


def _three_d_chart(records, x_axis, y_axis, z_axis, colors) -> ChartData:
    labels = [record.get(x_axis.column) for record in records]
    points = []
    for index, record in enumerate(records):
        x_value = record.get(x_axis.column)
        points.append(
            Point3D(
                x=to_number(x_value) if is_numeric(x_value) else float(index),
                y=to_number(record.get(y_axis.column)),
                z=to_number(record.get(z_axis.column)),
            )
        )
    return ChartData(
        labels=labels,
        datasets=[_series(y_axis.display_label, points, colors, [DEFAULT_SERIES_COLOR])],
    )


def aggregate_by_label(records: Iterable[Record], x_column: str, y_column: str) -> dict[Any, float]:
    """Sum Y per raw X value, keyed in first-seen order."""
    totals: dict[Any, float] = {}
    for record in records:
        key = record.get(x_column)
        totals[key] = totals.get(key, 0.0) + to_number(record.get(y_column))
    return totals


def _proportional_chart(records, x_axis, y_axis, colors) -> ChartData:
    totals = aggregate_by_label(records, x_axis.column, y_axis.column)
    return ChartData(
        labels=list(totals.keys()),
        datasets=[_series(y_axis.display_label, list(totals.values()), colors, PROPORTIONAL_PALETTE)],
    )


def transform_chart_data(
    records: list[Record],
    chart_type: str,
    x_axis: AxisSelection,
    y_axis: AxisSelection,
    z_axis: Optional[AxisSelection] = None,
    colors: Optional[list[str]] = None,
) -> ChartData:
    """Build chart-library-agnostic labels + datasets for the requested chart type."""
    strategy = resolve_strategy(chart_type, z_axis)
    if strategy is ChartStrategy.PROPORTIONAL:
        return _proportional_chart(records, x_axis, y_axis, colors)
    if strategy is ChartStrategy.THREE_D:
        return _three_d_chart(records, x_axis, y_axis, z_axis, colors)
    return _default_chart(records, x_axis, y_axis, colors)
