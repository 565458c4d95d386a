"""Assignment endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.assignment import AssignmentRequest, AssignmentResponse
from ...services.assignment.service import run_assignment

router = APIRouter(prefix="/assignments", tags=["assignments"])


@router.post("", response_model=AssignmentResponse, status_code=status.HTTP_200_OK)
def assign(payload: AssignmentRequest) -> AssignmentResponse:
    try:
        return run_assignment(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error assigning people to centers: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to assign people to centers: {str(exc)}"
        ) from exc
