"""Public challenge endpoints: create, view, log, abandon, send link."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends

from . import success_response
from ..deps import get_challenge_service
from ..schemas import CreateChallengeRequest, LogActivitiesRequest, SendLinkRequest
from ...metrics import calculate_current_day
from ...services.challenge_service import ChallengeService


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/challenge", status_code=201)
def create_challenge(
    request: CreateChallengeRequest,
    background_tasks: BackgroundTasks,
    service: ChallengeService = Depends(get_challenge_service),
):
    """Start a new challenge; emails the link if an address was given."""
    challenge = service.create_challenge(
        duration=request.duration,
        activities=request.activities,
        activity_units={name: unit.value for name, unit in request.activity_units.items()},
        email=request.email,
        timezone=request.timezone,
    )
    if challenge.email:
        background_tasks.add_task(service.notify_created, challenge)

    data = challenge.to_dict()
    data["current_day"] = 1
    return success_response(data)


@router.get("/challenge/{challenge_id}")
def get_challenge(
    challenge_id: str,
    service: ChallengeService = Depends(get_challenge_service),
):
    """Challenge with metrics per activity and what has been logged today."""
    return success_response(service.view_challenge(challenge_id).to_dict())


@router.delete("/challenge/{challenge_id}")
def abandon_challenge(
    challenge_id: str,
    service: ChallengeService = Depends(get_challenge_service),
):
    service.abandon_challenge(challenge_id)
    return success_response({"message": "Challenge abandoned successfully"})


@router.post("/challenge/{challenge_id}/log", status_code=201)
def log_activities(
    challenge_id: str,
    request: LogActivitiesRequest,
    service: ChallengeService = Depends(get_challenge_service),
):
    """Log values for one or more activities (today unless a date is given)."""
    result = service.log_activities(
        challenge_id,
        [(entry.activity, entry.reps) for entry in request.logs],
        date=request.date,
        edit=request.edit,
    )
    return success_response(result.to_dict())


@router.get("/challenge/{challenge_id}/log")
def get_logs(
    challenge_id: str,
    service: ChallengeService = Depends(get_challenge_service),
):
    challenge, logs = service.get_logs(challenge_id)
    return success_response({
        "logs": [log.to_dict() for log in logs],
        "challenge": {
            "start_date": challenge.start_date,
            "duration": challenge.duration,
            "current_day": calculate_current_day(challenge, service.repository.today()),
            "activities": challenge.activities,
        },
    })


@router.post("/send-link")
def send_link(
    request: SendLinkRequest,
    background_tasks: BackgroundTasks,
    service: ChallengeService = Depends(get_challenge_service),
):
    """Email the links of every challenge registered to an address."""
    challenges = service.find_challenges_for_email(request.email)
    background_tasks.add_task(service.notify_link_requested, request.email, challenges)
    logger.info(f"Link requested for {len(challenges)} challenge(s)")
    return success_response({
        "message": f"Challenge link sent to {request.email}",
        "count": len(challenges),
    })
