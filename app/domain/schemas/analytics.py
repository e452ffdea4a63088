"""Pydantic schemas for chart specs, chart data, insights and analytics records."""

from enum import Enum
from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field


class ChartType(str, Enum):
    LINE = "line"
    BAR = "bar"
    PIE = "pie"
    DOUGHNUT = "doughnut"
    SCATTER = "scatter"
    AREA = "area"
    BAR_3D = "3d-bar"
    SCATTER_3D = "3d-scatter"
    SURFACE_3D = "3d-surface"


class AxisSelection(BaseModel):
    column: str
    label: Optional[str] = None
    data_type: Optional[str] = None

    @property
    def display_label(self) -> str:
        return self.label or self.column


class ChartSpec(BaseModel):
    file_id: int
    worksheet_name: Optional[str] = None
    chart_type: ChartType
    x_axis: AxisSelection
    y_axis: AxisSelection
    z_axis: Optional[AxisSelection] = None
    title: Optional[str] = None
    colors: Optional[list[str]] = None
    custom_options: Optional[dict[str, Any]] = None


class ChartConfig(BaseModel):
    x_axis: AxisSelection
    y_axis: AxisSelection
    z_axis: Optional[AxisSelection] = None
    title: str
    colors: list[str]
    custom_options: Optional[dict[str, Any]] = None


class Point3D(BaseModel):
    x: float
    y: float
    z: float


class ChartDataset(BaseModel):
    label: str
    data: Union[list[Point3D], list[float]]
    background_color: list[str]
    border_color: str
    border_width: int = 2


class ChartData(BaseModel):
    labels: list[Any]
    datasets: list[ChartDataset]


class Insights(BaseModel):
    summary: str = ""
    trends: list[str] = []
    correlations: list[str] = []
    outliers: list[str] = []
    ai_generated: bool = False


class SharedUser(BaseModel):
    user_id: int
    permission: Literal["view", "edit"] = "view"


class ShareSettings(BaseModel):
    is_public: bool = False
    shared_with: list[SharedUser] = []


class AnalyticsUpdate(BaseModel):
    title: Optional[str] = None
    colors: Optional[list[str]] = None
    is_bookmarked: Optional[bool] = None
    share_settings: Optional[ShareSettings] = None


class AnalyticsRead(BaseModel):
    id: int
    file_id: Optional[int] = None
    owner_id: int
    worksheet_name: str
    chart_type: ChartType
    chart_config: ChartConfig
    chart_data: ChartData
    insights: Insights
    is_bookmarked: bool = False
    share_settings: ShareSettings = Field(default_factory=ShareSettings)
    view_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AnalyticsSummaryRead(BaseModel):
    """Listing view without the (potentially large) chart data."""

    id: int
    file_id: Optional[int] = None
    owner_id: int
    chart_type: ChartType
    chart_config: ChartConfig
    is_bookmarked: bool = False
    view_count: int = 0
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
