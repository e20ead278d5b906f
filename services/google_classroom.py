"""Minimal Google Classroom client used by the synchronisation service."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from core.errors import UpstreamFetchError
from core.settings import SYNC


def _http_status(exc: HttpError) -> Optional[int]:
    status = getattr(getattr(exc, "resp", None), "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


class ClassroomClient:
    def __init__(self, service) -> None:
        self.service = service

    @classmethod
    def from_credentials(cls, creds) -> "ClassroomClient":
        return cls(build("classroom", "v1", credentials=creds, cache_discovery=False))

    # ------------------------------------------------------------------
    def _paginate(
        self,
        request_factory: Callable[..., Any],
        items_key: str,
        *,
        course_id: Optional[str] = None,
        **params,
    ) -> List[Dict]:
        items: List[Dict] = []
        page_token: Optional[str] = None
        while True:
            try:
                response = request_factory(pageToken=page_token, **params).execute()
            except HttpError as exc:
                raise UpstreamFetchError(
                    f"Classroom {items_key} request failed: {exc}",
                    course_id=course_id,
                    status=_http_status(exc),
                ) from exc
            items.extend(response.get(items_key, []) or [])
            page_token = response.get("nextPageToken")
            if not page_token:
                break
        return items

    def list_active_courses(self) -> List[Dict]:
        return self._paginate(
            self.service.courses().list,
            "courses",
            courseStates=["ACTIVE"],
            pageSize=SYNC.courses_page_size,
        )

    def list_teachers(self, course_id: str) -> List[Dict]:
        return self._paginate(
            self.service.courses().teachers().list,
            "teachers",
            course_id=course_id,
            courseId=course_id,
        )

    def list_assignments(self, course_id: str) -> List[Dict]:
        return self._paginate(
            self.service.courses().courseWork().list,
            "courseWork",
            course_id=course_id,
            courseId=course_id,
            pageSize=SYNC.coursework_page_size,
            orderBy="dueDate desc",
        )


def owner_full_name(course: Dict, teachers: List[Dict]) -> str:
    owner_id = course.get("ownerId")
    for teacher in teachers:
        if teacher.get("userId") == owner_id:
            return ((teacher.get("profile") or {}).get("name") or {}).get("fullName") or ""
    return ""


__all__ = ["ClassroomClient", "owner_full_name"]
