from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime


class TopRoute(BaseModel):
    origin_city: str
    destination_city: str
    search_count: int


class UnderservedRoute(TopRoute):
    available_rides: int


class AnalyticsPeriod(BaseModel):
    days: int
    start_date: datetime
    end_date: datetime


class RouteAnalytics(BaseModel):
    top_routes: List[TopRoute]
    underserved_routes: List[UnderservedRoute]
    period: AnalyticsPeriod


class CityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    name_en: str
    name_sq: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    is_popular: bool
