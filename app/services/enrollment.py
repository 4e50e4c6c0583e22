"""Exam enrollment registry.

At most one enrollment exists per (user, exam); the table's unique
constraint is the final guard.  A user's first-ever enrollment grants a
one-time practice-time bonus and sends a congratulatory email, both as
post-commit tasks.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date
from uuid import UUID

from app.core.config import Settings
from app.core.errors import DuplicateRecordError, EnrollmentExistsError, NotFoundError
from app.models.enrollment import ExamEnrollment, ExamEnrollmentCreate, EnrollmentResult
from app.models.user import User
from app.repositories.enrollments import EnrollmentRepository
from app.repositories.exams import ExamRepository
from app.repositories.users import UserRepository
from app.services.notifications import EmailSender, TemplateEmail
from app.services.post_commit import PostCommitTasks

logger = logging.getLogger(__name__)


def add_months(start: date, months: int) -> date:
    """Shift ``start`` by whole months, clamping to the target month's last day."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class ExamEnrollmentRegistry:

    def __init__(
        self,
        enrollments: EnrollmentRepository,
        users: UserRepository,
        exams: ExamRepository,
        email: EmailSender,
        settings: Settings,
    ) -> None:
        self._enrollments = enrollments
        self._users = users
        self._exams = exams
        self._email = email
        self._settings = settings

    def default_exam_date(self, today: date | None = None) -> date:
        return add_months(today or date.today(), self._settings.DEFAULT_EXAM_DATE_MONTHS)

    def get_user_exam_enrollment(self, user_id: UUID, exam_id: UUID) -> ExamEnrollment | None:
        return self._enrollments.get(user_id, exam_id)

    def enroll(
        self,
        user: User,
        exam_id: UUID,
        practice_frequency: str | None = None,
        exam_date: date | None = None,
    ) -> EnrollmentResult:
        """Create the enrollment; raises ``EnrollmentExistsError`` on a duplicate."""
        data = ExamEnrollmentCreate(
            user_id=user.id,
            exam_id=exam_id,
            exam_date=exam_date or self.default_exam_date(),
            exam_practice_frequency=practice_frequency
            or self._settings.DEFAULT_PRACTICE_FREQUENCY,
        )
        try:
            enrollment = self._enrollments.create(data)
        except DuplicateRecordError as exc:
            raise EnrollmentExistsError() from exc

        logger.info(
            "exam_enrolled",
            extra={"user_id": str(user.id), "exam_id": str(exam_id)},
        )

        result = EnrollmentResult(enrollment=enrollment)
        if not user.user_first_enrollment:
            result.warnings = self._first_enrollment_rewards(user, result)
        return result

    def enroll_if_absent(
        self,
        user: User,
        exam_id: UUID,
        practice_frequency: str | None = None,
        exam_date: date | None = None,
    ) -> EnrollmentResult | None:
        """Enroll unless already enrolled; returns None for the no-op case."""
        if self._enrollments.get(user.id, exam_id) is not None:
            return None
        try:
            return self.enroll(user, exam_id, practice_frequency, exam_date)
        except EnrollmentExistsError:
            # Lost a race against a concurrent enrollment
            return None

    def enroll_in_exams(self, user: User, exam_ids: list[UUID]) -> list[str]:
        """Enroll ``user`` in each exam; failures become warnings."""
        warnings: list[str] = []
        for exam_id in exam_ids:
            try:
                result = self.enroll_if_absent(user, exam_id)
            except Exception as exc:
                logger.error(
                    "exam_auto_enroll_failed",
                    extra={"user_id": str(user.id), "exam_id": str(exam_id), "error": str(exc)},
                    exc_info=True,
                )
                warnings.append(f"Failed to enroll {user.email} in exam {exam_id}: {exc}")
                continue
            if result is not None:
                warnings.extend(result.warnings)
                if result.bonus_granted:
                    user = user.model_copy(update={"user_first_enrollment": True})
        return warnings

    def join_exam(
        self,
        user_id: UUID,
        exam_id: UUID,
        exam_date: date | None = None,
        practice_frequency: str | None = None,
    ) -> EnrollmentResult:
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        exam = self._exams.get_by_id(exam_id)
        if exam is None:
            raise NotFoundError("Exam")
        return self.enroll(user, exam.id, practice_frequency, exam_date)

    def _first_enrollment_rewards(self, user: User, result: EnrollmentResult) -> list[str]:
        bonus_seconds = self._settings.FIRST_ENROLLMENT_BONUS_SECONDS

        def grant_bonus() -> None:
            result.bonus_granted = self._users.grant_first_enrollment_bonus(
                user.id, bonus_seconds
            )
            if result.bonus_granted:
                logger.info(
                    "first_enrollment_bonus_granted",
                    extra={"user_id": str(user.id), "seconds": bonus_seconds},
                )

        def send_congratulations() -> None:
            if not result.bonus_granted:
                return
            self._email.send(
                TemplateEmail(
                    to=user.email,
                    template=self._settings.FIRST_EXAM_TEMPLATE_ID,
                    model={
                        "firstname": user.firstname,
                        "bonus_minutes": bonus_seconds // 60,
                        "dashboard_url": f"{self._settings.FRONTEND_URL}/dashboard",
                    },
                )
            )

        tasks = PostCommitTasks(context={"user_id": str(user.id)})
        tasks.add("first_enrollment_bonus", grant_bonus)
        tasks.add("first_enrollment_email", send_congratulations)
        return tasks.run()
