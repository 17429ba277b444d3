from pydantic import BaseModel, Field
from typing import List


# --- API Response Models ---

class SlotResponse(BaseModel):
    """One cell of the availability board."""
    label: str
    booked: bool

    class Config:
        json_schema_extra = {
            "example": {
                "label": "8:30 AM",
                "booked": False
            }
        }

class AvailabilityResponse(BaseModel):
    """API response model for today's availability."""
    dateDisplay: str
    grid: List[SlotResponse] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "dateDisplay": "Monday, October 19, 2026",
                "grid": [
                    {"label": "8:00 AM", "booked": True},
                    {"label": "8:30 AM", "booked": False}
                ]
            }
        }

class ErrorResponse(BaseModel):
    error: str

class HealthResponse(BaseModel):
    ok: bool = True
    ts: int # Epoch milliseconds
