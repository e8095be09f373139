from typing import Optional, Union

from pydantic import BaseModel, Field


class ReservationCreatePayload(BaseModel):
    """
    Schema for a booking request. Field-level rules (opening hours, guest
    capacity, duration policy) are checked by the reservation service so that
    every problem is reported in one response.
    """

    resource_id: int = Field(..., description="Bookable space ID")
    date: str = Field(..., description="Calendar date, YYYY-MM-DD (local time)")
    start_time: str = Field(..., description="Start time, HH:MM 24-hour")
    end_time: str = Field(..., description="End time, HH:MM 24-hour")
    duration_type: str = Field(..., description="hour, day, week or month")
    duration: Union[int, float] = Field(..., description="Number of duration units booked")
    guests: int = Field(1, description="Number of people")
    payment_method: str = Field(..., description="onsite, card or paypal")
    notes: Optional[str] = Field(None, description="Free-text note for staff")


class ReservationUpdatePayload(BaseModel):
    """
    Schema for moving a reservation. Omitted fields keep their current value;
    the price is recomputed.
    """

    date: Optional[str] = Field(None, description="New calendar date, YYYY-MM-DD")
    start_time: Optional[str] = Field(None, description="New start time, HH:MM")
    end_time: Optional[str] = Field(None, description="New end time, HH:MM")
