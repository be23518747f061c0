"""Pydantic models for CAIC Avid API payloads.

Defines the forecast area features and the three product variants returned by
the products endpoint. Attribute names are snake_case; the upstream camelCase
names are accepted as aliases.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

ProductType = Literal["avalancheforecast", "regionaldiscussion", "specialproduct"]
PRODUCT_TYPES: tuple[str, ...] = ("avalancheforecast", "regionaldiscussion", "specialproduct")


class CAICModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Forecast areas (GeoJSON)
# ---------------------------------------------------------------------------

class MultiPolygonGeometry(CAICModel):
    type: Literal["MultiPolygon"] = "MultiPolygon"
    # [polygons][rings][points][lng, lat]
    coordinates: list[list[list[list[float]]]]


class FeatureProperties(CAICModel):
    id: str
    centroid: Optional[list[float]] = None


class Feature(CAICModel):
    """A forecast area.

    Attributes:
        bbox: Bounding box as [minLng, minLat, maxLng, maxLat]
        geometry: MultiPolygon outline of the area
        properties.id: Area identifier matching ``area_id`` on products
    """

    id: Optional[Union[str, int]] = None
    type: Literal["Feature"] = "Feature"
    bbox: tuple[float, float, float, float]
    geometry: MultiPolygonGeometry
    properties: FeatureProperties

    @property
    def area_id(self) -> str:
        return self.properties.id


class FeatureCollection(CAICModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[Feature] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

class Communications(CAICModel):
    headline: str = ""
    sms: str = ""


class Image(CAICModel):
    id: str
    url: str
    width: int = 0
    height: int = 0
    credit: Optional[str] = None
    caption: str = ""
    tag: str = ""
    alt_text: Optional[str] = None
    date_taken: Optional[str] = None
    is_archived: bool = False


class Media(CAICModel):
    images: list[Image] = Field(default_factory=list, alias="Images")


class DaySummary(CAICModel):
    date: str
    content: str


class DaySummaries(CAICModel):
    days: list[DaySummary] = Field(default_factory=list)


class NestedDaySummaries(CAICModel):
    days: list[list[DaySummary]] = Field(default_factory=list)


class DangerRating(CAICModel):
    position: int = 0
    alp: str = "noRating"
    tln: str = "noRating"
    btl: str = "noRating"
    date: str


class DangerRatings(CAICModel):
    days: list[DangerRating] = Field(default_factory=list)


class ExpectedSize(CAICModel):
    min: str
    max: str


class AvalancheProblem(CAICModel):
    type: str
    aspect_elevations: list[str] = Field(default_factory=list)
    likelihood: str
    expected_size: ExpectedSize
    comment: Optional[str] = None


class AvalancheProblems(CAICModel):
    days: list[list[AvalancheProblem]] = Field(default_factory=list)


class Product(CAICModel):
    """Fields shared by every product variant."""

    id: str
    area_id: str
    public_name: str = ""
    polygons: str = ""
    forecaster: str = ""
    issue_date_time: str = ""
    expiry_date_time: str = ""
    is_translated: bool = False
    media: Media = Field(default_factory=Media)


class AvalancheForecast(Product):
    type: Literal["avalancheforecast"]
    weather_summary: DaySummaries = Field(default_factory=DaySummaries)
    snowpack_summary: DaySummaries = Field(default_factory=DaySummaries)
    avalanche_summary: DaySummaries = Field(default_factory=DaySummaries)
    terrain_and_travel_advice: NestedDaySummaries = Field(default_factory=NestedDaySummaries)
    # The forecast payload spells this one in the singular.
    communication: Communications = Field(default_factory=Communications)
    danger_ratings: DangerRatings = Field(default_factory=DangerRatings)
    avalanche_problems: AvalancheProblems = Field(default_factory=AvalancheProblems)


class RegionalDiscussion(Product):
    type: Literal["regionaldiscussion"]
    title: str = ""
    message: str = ""
    communications: Communications = Field(default_factory=Communications)


class SpecialProduct(Product):
    type: Literal["specialproduct"]
    title: str = ""
    special_product_type: str
    start_date: Optional[str] = None
    message: Optional[str] = None
    communications: Communications = Field(default_factory=Communications)


ForecastRecord = Annotated[
    Union[AvalancheForecast, RegionalDiscussion, SpecialProduct],
    Field(discriminator="type"),
]

forecast_record_adapter = TypeAdapter(ForecastRecord)


def parse_forecast_record(data: dict) -> Union[AvalancheForecast, RegionalDiscussion, SpecialProduct]:
    """Validate one raw product dict into its variant model."""
    return forecast_record_adapter.validate_python(data)
