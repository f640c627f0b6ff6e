from pydantic import BaseModel
from datetime import date as Date


class ScheduleGenerate(BaseModel):
    service_id: int
    start_date: Date
    end_date: Date


class ScheduleGenerateResponse(BaseModel):
    service_id: int
    created: int


class ScheduleUpdate(BaseModel):
    is_available: bool


class ScheduleResponse(BaseModel):
    id: int
    service_id: int
    date: Date
    start_time: str
    end_time: str
    is_available: bool

    class Config:
        from_attributes = True
