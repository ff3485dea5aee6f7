from fastapi import APIRouter, Depends

from vetclinic.api.deps import get_agent
from vetclinic.api.schemas.appointment import AgentRequest, AgentResponse
from vetclinic.services.appointment_agent import AppointmentAgent

router = APIRouter(prefix="/agent", tags=["agent"])


@router.post("/appointments", response_model=AgentResponse)
async def ask_scheduling_assistant(
    body: AgentRequest,
    agent: AppointmentAgent = Depends(get_agent),
) -> AgentResponse:
    """Free-text scheduling request; the assistant may list slots or book one."""
    reply = await agent.run(body.prompt)
    return AgentResponse(reply=reply)
