"""Admin endpoints, gated by the shared admin token."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from . import success_response
from ..auth import require_admin, verify_password
from ..deps import get_challenge_service
from ..schemas import AdminLoginRequest, AdminUpdateChallengeRequest, AdminUpdateLogRequest
from ...config import get_settings
from ...exceptions import ChallengeTrackerError, UnauthorizedError
from ...models.challenge import ChallengeStatus
from ...services.challenge_service import ChallengeService


login_router = APIRouter()
router = APIRouter(dependencies=[Depends(require_admin)])


@login_router.post("/admin/login")
def login(request: AdminLoginRequest):
    """Exchange the admin password for the admin token."""
    if not verify_password(request.password):
        raise UnauthorizedError("Invalid admin password")

    token = get_settings().admin_token
    if not token:
        raise ChallengeTrackerError("Admin token not configured")
    return success_response({"token": token})


@router.get("/admin/challenges")
def list_challenges(
    status: Optional[ChallengeStatus] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    service: ChallengeService = Depends(get_challenge_service),
):
    """Challenges newest first, optionally filtered by status."""
    challenges, total = service.list_challenges(status=status, limit=limit, offset=offset)
    return success_response({
        "challenges": [c.to_dict() for c in challenges],
        "count": len(challenges),
        "total": total,
    })


@router.get("/admin/challenge/{challenge_id}")
def get_challenge(
    challenge_id: str,
    service: ChallengeService = Depends(get_challenge_service),
):
    challenge, logs = service.get_logs(challenge_id)
    return success_response({
        "challenge": challenge.to_dict(),
        "logs": [log.to_dict() for log in logs],
    })


@router.put("/admin/challenge/{challenge_id}")
def update_challenge(
    challenge_id: str,
    request: AdminUpdateChallengeRequest,
    service: ChallengeService = Depends(get_challenge_service),
):
    challenge = service.update_challenge(
        challenge_id,
        duration=request.duration,
        status=request.status,
        email=request.email,
        activities=request.activities,
        activity_units=(
            {name: unit.value for name, unit in request.activity_units.items()}
            if request.activity_units is not None else None
        ),
    )
    return success_response({"challenge": challenge.to_dict()})


@router.delete("/admin/challenge/{challenge_id}")
def delete_challenge(
    challenge_id: str,
    service: ChallengeService = Depends(get_challenge_service),
):
    service.delete_challenge(challenge_id)
    return success_response({"message": "Challenge deleted successfully"})


@router.put("/admin/challenge/{challenge_id}/log")
def update_log(
    challenge_id: str,
    request: AdminUpdateLogRequest,
    service: ChallengeService = Depends(get_challenge_service),
):
    """Edit a log entry, or delete it when ``delete`` is set."""
    if request.delete:
        log = service.delete_log(challenge_id, request.timestamp)
        return success_response({"message": "Log deleted successfully", "log": log.to_dict()})

    log = service.update_log(
        challenge_id,
        request.timestamp,
        date=request.date,
        activity=request.activity,
        reps=request.reps,
    )
    return success_response({"log": log.to_dict()})


@router.post("/admin/challenge/{challenge_id}/recalculate")
def recalculate(
    challenge_id: str,
    service: ChallengeService = Depends(get_challenge_service),
):
    metrics = service.recalculate_metrics(challenge_id)
    return success_response({
        "message": "Metrics recalculated successfully",
        "metrics": {name: m.to_dict() for name, m in metrics.items()},
    })
