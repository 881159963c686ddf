"""
Interview scheduling API endpoints.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from jobsuite.domains.interview.application.dto import (
    InterviewCancelDTO,
    InterviewCreateDTO,
    InterviewResponseDTO,
    InterviewUpdateDTO,
    QueueStatusDTO,
    ReminderTriggerDTO,
)
from jobsuite.domains.interview.application.services import InterviewService
from jobsuite.domains.interview.domain.entities.interview import InterviewStatus
from jobsuite.domains.notification.application.services import InterviewNotificationService
from jobsuite.domains.notification.domain.entities.reminder_job import ReminderSlot
from jobsuite.shared.application.exceptions import (
    BusinessRuleException,
    NotFoundException,
)
from jobsuite.shared.domain.exceptions import DomainException
from jobsuite.shared.infrastructure.container import get_interview_service, get_notification_service
from jobsuite.shared.infrastructure.monitoring.metrics import measure_http_request


logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/interviews", tags=["Interviews"])


def _http_error(e: Exception, detail: str) -> HTTPException:
    """Map service exceptions onto HTTP status codes."""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, NotFoundException):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (BusinessRuleException, DomainException)):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=detail)


@router.post("", response_model=InterviewResponseDTO, status_code=201)
@measure_http_request("/interviews/create")
async def create_interview(
    create_request: InterviewCreateDTO,
    interview_service: InterviewService = Depends(get_interview_service)
) -> InterviewResponseDTO:
    """Schedule an interview and its reminders."""
    try:
        return await interview_service.create_interview(create_request)

    except Exception as e:
        logger.error(
            "Failed to create interview",
            user_id=create_request.user_id,
            application_id=create_request.application_id,
            error=str(e),
            error_type=type(e).__name__
        )
        raise _http_error(e, "Failed to create interview")


@router.get("", response_model=List[InterviewResponseDTO])
@measure_http_request("/interviews/list")
async def list_interviews(
    user_id: str = Query(..., description="Owner of the interviews"),
    status: Optional[InterviewStatus] = Query(None),
    upcoming: bool = Query(False, description="Only interviews that have not started yet"),
    interview_service: InterviewService = Depends(get_interview_service)
) -> List[InterviewResponseDTO]:
    """List a user's interviews, soonest first."""
    try:
        return await interview_service.list_interviews(user_id, status=status, upcoming_only=upcoming)

    except Exception as e:
        logger.error("Failed to list interviews", user_id=user_id, error=str(e))
        raise _http_error(e, "Failed to retrieve interviews")


@router.get("/notifications/status", response_model=QueueStatusDTO)
@measure_http_request("/interviews/notifications/status")
async def get_notification_queue_status(
    notification_service: InterviewNotificationService = Depends(get_notification_service)
) -> QueueStatusDTO:
    """Snapshot of the in-process reminder registry."""
    return QueueStatusDTO.from_status(
        notification_service.get_queue_status(),
        running=notification_service.is_running
    )


@router.get("/{interview_id}", response_model=InterviewResponseDTO)
@measure_http_request("/interviews/get")
async def get_interview(
    interview_id: str,
    interview_service: InterviewService = Depends(get_interview_service)
) -> InterviewResponseDTO:
    try:
        return await interview_service.get_interview(interview_id)

    except Exception as e:
        logger.error("Failed to get interview", interview_id=interview_id, error=str(e))
        raise _http_error(e, "Failed to retrieve interview")


@router.patch("/{interview_id}", response_model=InterviewResponseDTO)
@measure_http_request("/interviews/update")
async def update_interview(
    interview_id: str,
    update_request: InterviewUpdateDTO,
    interview_service: InterviewService = Depends(get_interview_service)
) -> InterviewResponseDTO:
    """Update an interview. Changing ``scheduled_date`` reschedules its reminders."""
    try:
        return await interview_service.update_interview(interview_id, update_request)

    except Exception as e:
        logger.error(
            "Failed to update interview",
            interview_id=interview_id,
            error=str(e),
            error_type=type(e).__name__
        )
        raise _http_error(e, "Failed to update interview")


@router.post("/{interview_id}/cancel", response_model=InterviewResponseDTO)
@measure_http_request("/interviews/cancel")
async def cancel_interview(
    interview_id: str,
    cancel_request: Optional[InterviewCancelDTO] = None,
    interview_service: InterviewService = Depends(get_interview_service)
) -> InterviewResponseDTO:
    """Cancel an interview and notify the candidate."""
    try:
        reason = cancel_request.reason if cancel_request else None
        return await interview_service.cancel_interview(interview_id, reason)

    except Exception as e:
        logger.error("Failed to cancel interview", interview_id=interview_id, error=str(e))
        raise _http_error(e, "Failed to cancel interview")


@router.delete("/{interview_id}", status_code=204)
@measure_http_request("/interviews/delete")
async def delete_interview(
    interview_id: str,
    interview_service: InterviewService = Depends(get_interview_service)
) -> Response:
    try:
        await interview_service.delete_interview(interview_id)
        return Response(status_code=204)

    except Exception as e:
        logger.error("Failed to delete interview", interview_id=interview_id, error=str(e))
        raise _http_error(e, "Failed to delete interview")


@router.post("/{interview_id}/test-reminder")
@measure_http_request("/interviews/test-reminder")
async def send_test_reminder(
    interview_id: str,
    trigger_request: ReminderTriggerDTO,
    notification_service: InterviewNotificationService = Depends(get_notification_service)
) -> Dict[str, Any]:
    """Send one reminder email right away."""
    try:
        try:
            slot = ReminderSlot(trigger_request.reminder_type)
        except ValueError:
            valid = ", ".join(slot.value for slot in ReminderSlot)
            raise HTTPException(status_code=400, detail=f"Invalid reminder type. Must be one of: {valid}")

        success = await notification_service.send_test_reminder(interview_id, slot)
        if not success:
            raise HTTPException(status_code=500, detail="Failed to send test reminder")

        return {
            "success": True,
            "message": f"Test {slot.value} reminder sent",
            "interview_id": interview_id
        }

    except Exception as e:
        if not isinstance(e, HTTPException):
            logger.error("Failed to send test reminder", interview_id=interview_id, error=str(e))
        raise _http_error(e, "Failed to send test reminder")
