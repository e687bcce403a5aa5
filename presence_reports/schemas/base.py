# presence_reports/schemas/base.py
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

ScopeName = Literal["person", "group", "gateway", "building"]


class ReportModel(BaseModel):
    """
    Base dos relatórios: valores imutáveis, seguros para serializar e cachear.
    """
    model_config = ConfigDict(frozen=True)


class LocationContext(ReportModel):
    building_id: Optional[int] = None
    building_name: Optional[str] = None

    floor_id: Optional[int] = None
    floor_name: Optional[str] = None

    floor_plan_id: Optional[int] = None
    floor_plan_name: Optional[str] = None
