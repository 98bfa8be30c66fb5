from typing import List, Literal

from fastapi import APIRouter, Depends

from rideshare.deps import get_city_service
from rideshare.schemas.analytics import CityOut
from rideshare.services.cities import CityService

router = APIRouter(tags=["cities"])


@router.get("/", response_model=List[CityOut])
async def search_cities(q: str = "", locale: Literal["sq", "en"] = "sq", cities: CityService = Depends(get_city_service)):
    return await cities.search_cities(q, locale)
