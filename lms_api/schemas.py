from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ViewFiltersModel(BaseModel):
    search: str = ""
    customer_journey_point: str = ""
    training_type: str = ""
    centre: str = ""
    user_email: str = ""
    country: str = ""
    date_preset: str = "last30"
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class MetaDatesResponse(BaseModel):
    dates: List[str]


class PayloadResponse(BaseModel):
    module_catalogue: List[Dict[str, Any]]
    centre_breakdown: List[Dict[str, Any]]
    user_detail: List[Dict[str, Any]]
    engagement_detail: List[Dict[str, Any]]
    available_dates: List[str]
