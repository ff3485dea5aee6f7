import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from vetclinic.api.deps import get_business_hours, get_store
from vetclinic.api.schemas.appointment import (
    CreateAppointmentRequest,
    EditAppointmentRequest,
    ExamResultRequest,
)
from vetclinic.models.appointment import AppointmentCreate, AppointmentPublic, AppointmentUpdate
from vetclinic.models.exam_result import ExamResultCreate
from vetclinic.models.results import ActionResult, ErrorKind
from vetclinic.services.appointment_service import (
    add_exam_result,
    cancel_appointment,
    complete_appointment,
    confirm_appointment,
    create_appointment,
    edit_appointment,
    list_appointments,
    to_public,
)
from vetclinic.services.business_hours import BusinessHours
from vetclinic.services.store import AppointmentStore, StoreError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])

_ERROR_STATUS = {
    ErrorKind.POLICY: status.HTTP_409_CONFLICT,
    ErrorKind.AMBIGUOUS: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.STORE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _respond(result: ActionResult, response: Response, success_status: int = status.HTTP_200_OK) -> ActionResult:
    """Keep the {success, message} body; pick the status code from the outcome."""
    response.status_code = success_status if result.success else _ERROR_STATUS[result.error]
    return result


@router.post("", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    body: CreateAppointmentRequest,
    response: Response,
    store: AppointmentStore = Depends(get_store),
    hours: BusinessHours = Depends(get_business_hours),
) -> ActionResult:
    data = AppointmentCreate(**body.model_dump())
    result = await create_appointment(store, data, hours)
    return _respond(result, response, status.HTTP_201_CREATED)


@router.get("", response_model=list[AppointmentPublic])
async def list_all_appointments(
    from_date: date | None = Query(None, alias="from_date"),
    store: AppointmentStore = Depends(get_store),
) -> list[AppointmentPublic]:
    try:
        appointments = await list_appointments(store, from_date=from_date)
    except StoreError as e:
        logger.exception("List appointments failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not load appointments. Please try again.",
        ) from e
    return [to_public(a) for a in appointments]


@router.patch("/{appointment_id}", response_model=ActionResult)
async def update_appointment(
    appointment_id: int,
    body: EditAppointmentRequest,
    response: Response,
    store: AppointmentStore = Depends(get_store),
    hours: BusinessHours = Depends(get_business_hours),
) -> ActionResult:
    changes = AppointmentUpdate(**body.model_dump(exclude_unset=True))
    result = await edit_appointment(store, appointment_id, changes, hours)
    return _respond(result, response)


@router.post("/{appointment_id}/cancel", response_model=ActionResult)
async def cancel(
    appointment_id: int, response: Response, store: AppointmentStore = Depends(get_store)
) -> ActionResult:
    return _respond(await cancel_appointment(store, appointment_id), response)


@router.post("/{appointment_id}/confirm", response_model=ActionResult)
async def confirm(
    appointment_id: int, response: Response, store: AppointmentStore = Depends(get_store)
) -> ActionResult:
    return _respond(await confirm_appointment(store, appointment_id), response)


@router.post("/{appointment_id}/complete", response_model=ActionResult)
async def complete(
    appointment_id: int, response: Response, store: AppointmentStore = Depends(get_store)
) -> ActionResult:
    return _respond(await complete_appointment(store, appointment_id), response)


@router.post("/{appointment_id}/exam-result", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def attach_exam_result(
    appointment_id: int,
    body: ExamResultRequest,
    response: Response,
    store: AppointmentStore = Depends(get_store),
) -> ActionResult:
    data = ExamResultCreate(
        exam_name=body.exam_name,
        result_date=body.result_date,
        result_summary=body.result_summary,
        attachment_url=str(body.attachment_url) if body.attachment_url else None,
    )
    result = await add_exam_result(store, appointment_id, data)
    return _respond(result, response, status.HTTP_201_CREATED)
