from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from vetclinic.core.config import settings
from vetclinic.core.db import get_session
from vetclinic.services.appointment_agent import AppointmentAgent
from vetclinic.services.business_hours import BusinessHours
from vetclinic.services.sql_store import SqlAppointmentStore
from vetclinic.services.store import AppointmentStore


def get_store(session: AsyncSession = Depends(get_session)) -> AppointmentStore:
    return SqlAppointmentStore(session)


def get_business_hours() -> BusinessHours:
    return BusinessHours.from_settings(settings)


async def get_agent(
    store: AppointmentStore = Depends(get_store),
    hours: BusinessHours = Depends(get_business_hours),
) -> AsyncGenerator[AppointmentAgent, None]:
    if not settings.llm_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scheduling assistant is not configured (set LLM_API_KEY)",
        )
    agent = AppointmentAgent(store, config=settings, hours=hours)
    try:
        yield agent
    finally:
        await agent.close()
