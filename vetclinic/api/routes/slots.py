from datetime import date

from fastapi import APIRouter, Depends, Query

from vetclinic.api.deps import get_business_hours, get_store
from vetclinic.models.results import SlotListing
from vetclinic.services.business_hours import BusinessHours
from vetclinic.services.slot_service import list_available_slots
from vetclinic.services.store import AppointmentStore

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=SlotListing)
async def available_slots(
    date_param: date = Query(..., alias="date"),
    store: AppointmentStore = Depends(get_store),
    hours: BusinessHours = Depends(get_business_hours),
) -> SlotListing:
    """Free hourly slots for the given day (local clinic time), or why there are none."""
    return await list_available_slots(store, date_param, hours)
