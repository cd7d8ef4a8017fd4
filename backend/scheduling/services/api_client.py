from __future__ import annotations

import logging
from typing import Any

import httpx

from scheduling.core.config import get_settings
from scheduling.core.exceptions import PersistenceError
from scheduling.schemas.workload import WorkloadValidation, WorkloadValidationRequest
from scheduling.services.conflict_detector import ExistingSchedule, ScheduleContext
from scheduling.services.hours import HoursViolation
from scheduling.services.offerings import Offering, normalize_offerings

logger = logging.getLogger(__name__)


def _error_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


def _violations(body: Any) -> list[HoursViolation]:
    if not isinstance(body, dict):
        return []
    raw = body.get("violations")
    if raw is None and isinstance(body.get("details"), dict):
        raw = body["details"].get("violations")
    if not isinstance(raw, list):
        return []
    return [HoursViolation.from_payload(item) for item in raw if isinstance(item, dict)]


class SchedulingApiClient:
    """Async client for the offerings, schedules and workload endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.api_base_url).rstrip("/"),
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> SchedulingApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise PersistenceError(f"Could not reach the scheduling service: {exc}", status_code=503) from exc

        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = _error_message(body, response.reason_phrase or f"HTTP {response.status_code}")
            details = body.get("details") if isinstance(body, dict) and isinstance(body.get("details"), dict) else None
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
            raise PersistenceError(
                message,
                status_code=response.status_code,
                violations=_violations(body),
                details=details,
            )
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("%s %s returned a non-JSON body", method, path)
            raise PersistenceError(
                f"Unexpected response from the scheduling service ({response.status_code})",
                status_code=502,
            ) from exc

    async def fetch_offerings(self, context: ScheduleContext) -> list[Offering]:
        params = {
            "courseId": context.course_id,
            "yearLevel": context.year_level,
            "semester": context.semester,
        }
        if context.academic_year:
            params["academicYear"] = context.academic_year
        data = await self._request("GET", "/offerings/", params=params)
        return normalize_offerings(data or [])

    async def fetch_conflict_context(
        self,
        context: ScheduleContext,
        exclude_schedule_id: str | None = None,
    ) -> list[ExistingSchedule]:
        params = {"excludeScheduleId": exclude_schedule_id} if exclude_schedule_id else None
        data = await self._request(
            "GET",
            f"/schedules/check-conflicts/{context.course_id}/{context.year_level}/{context.semester}",
            params=params,
        )
        return [ExistingSchedule.from_payload(item) for item in data or []]

    async def fetch_schedule(self, schedule_id: str) -> dict:
        return await self._request("GET", f"/schedules/{schedule_id}")

    async def save_schedule(self, payload: dict, schedule_id: str | None = None) -> dict:
        if schedule_id:
            return await self._request("PUT", f"/schedules/{schedule_id}", json=payload)
        return await self._request("POST", "/schedules/", json=payload)

    async def validate_teacher_assignment(
        self,
        teacher_id: str,
        subject_id: str,
        *,
        academic_year: str | None = None,
        semester: str | None = None,
        previous_teacher_ids: list[str] | None = None,
    ) -> WorkloadValidation:
        request = WorkloadValidationRequest(
            teacherId=teacher_id,
            subjectId=subject_id,
            academicYear=academic_year or None,
            semester=semester or None,
            previousTeacherIds=list(previous_teacher_ids or []),
        )
        data = await self._request(
            "POST",
            "/workload/validate-assignment",
            json=request.model_dump(exclude_none=True),
        )
        return WorkloadValidation.model_validate(data)
