"""Unit tests for the Supabase repository adapters.

The Supabase client is a ``MagicMock`` whose query builder returns itself,
so each test can assert the filter chain and the stored function calls.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from postgrest.exceptions import APIError

from app.core.errors import DuplicateRecordError
from app.db.supabase import is_unique_violation
from app.models.enrollment import ExamEnrollmentCreate
from app.models.partner_candidate import PartnerCandidateCreate
from app.models.user import UserCreate
from app.repositories.enrollments import SupabaseEnrollmentRepository
from app.repositories.exams import SupabaseExamRepository
from app.repositories.partner_candidates import SupabasePartnerCandidateRepository
from app.repositories.seats import SupabaseSeatRepository
from app.repositories.users import SupabaseUserRepository


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _chainable_table_mock(data=None, count=None) -> MagicMock:
    """Return a mock that supports fluent chaining."""
    m = MagicMock()
    for method in (
        "select", "insert", "update", "eq", "limit",
        "in_", "is_", "order", "range",
    ):
        getattr(m, method).return_value = m
    m.not_ = m
    m.execute.return_value = MagicMock(data=data if data is not None else [], count=count)
    return m


def _client(table: MagicMock) -> MagicMock:
    client = MagicMock()
    client.table.return_value = table
    return client


def _duplicate_error() -> APIError:
    return APIError(
        {
            "code": "23505",
            "message": 'duplicate key value violates unique constraint "users_email_key"',
        }
    )


def _seat_row(**overrides: object) -> dict:
    row = {
        "id": str(uuid4()),
        "partner_id": str(uuid4()),
        "batch_id": str(uuid4()),
        "seat_count": 10,
        "seats_assigned": 4,
        "sessions_per_day": 3,
        "is_active": True,
    }
    row.update(overrides)
    return row


# ---------------------------------------------------------------------------
# Unique violation detection
# ---------------------------------------------------------------------------

class TestIsUniqueViolation:

    def test_postgrest_error_code(self) -> None:
        assert is_unique_violation(_duplicate_error()) is True

    def test_message_fallback(self) -> None:
        exc = Exception("23505: duplicate key value violates unique constraint")
        assert is_unique_violation(exc) is True

    def test_other_errors(self) -> None:
        assert is_unique_violation(APIError({"code": "23503", "message": "fk"})) is False
        assert is_unique_violation(RuntimeError("timeout")) is False


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class TestSupabaseUserRepository:

    def test_get_by_email(self) -> None:
        user_id = uuid4()
        table = _chainable_table_mock(
            [{"id": str(user_id), "firstname": "Ada", "lastname": "Obi", "email": "ada@example.com"}]
        )
        client = _client(table)

        user = SupabaseUserRepository(client).get_by_email("ada@example.com")

        client.table.assert_called_with("users")
        table.eq.assert_called_with("email", "ada@example.com")
        assert user is not None and user.id == user_id

    def test_get_by_email_missing(self) -> None:
        table = _chainable_table_mock([])
        assert SupabaseUserRepository(_client(table)).get_by_email("x@example.com") is None

    def test_create_many_maps_unique_violation(self) -> None:
        table = _chainable_table_mock()
        table.execute.side_effect = _duplicate_error()

        with pytest.raises(DuplicateRecordError):
            SupabaseUserRepository(_client(table)).create_many(
                [UserCreate(firstname="Ada", lastname="Obi", email="ada@example.com")]
            )

    def test_create_many_reraises_other_errors(self) -> None:
        table = _chainable_table_mock()
        table.execute.side_effect = RuntimeError("connection reset")

        with pytest.raises(RuntimeError):
            SupabaseUserRepository(_client(table)).create_many(
                [UserCreate(firstname="Ada", lastname="Obi", email="ada@example.com")]
            )

    def test_create_many_empty_skips_query(self) -> None:
        client = _client(_chainable_table_mock())
        assert SupabaseUserRepository(client).create_many([]) == []
        client.table.assert_not_called()

    @pytest.mark.parametrize(("data", "expected"), [(True, True), (False, False), (None, False)])
    def test_grant_first_enrollment_bonus(self, data, expected) -> None:
        client = MagicMock()
        client.rpc.return_value.execute.return_value = MagicMock(data=data)
        user_id = uuid4()

        granted = SupabaseUserRepository(client).grant_first_enrollment_bonus(user_id, 300)

        client.rpc.assert_called_once_with(
            "grant_first_enrollment_bonus", {"p_user_id": str(user_id), "p_seconds": 300}
        )
        assert granted is expected

    def test_set_invite_token(self) -> None:
        table = _chainable_table_mock()
        user_id = uuid4()
        expires = datetime(2026, 5, 1, tzinfo=timezone.utc)

        SupabaseUserRepository(_client(table)).set_invite_token(user_id, "abc", expires)

        table.update.assert_called_once_with(
            {"invite_token_hash": "abc", "invite_token_expires_at": expires.isoformat()}
        )
        table.eq.assert_called_once_with("id", str(user_id))


# ---------------------------------------------------------------------------
# Seats
# ---------------------------------------------------------------------------

class TestSupabaseSeatRepository:

    def test_increment_if_available_uses_guarded_function(self) -> None:
        row = _seat_row(seats_assigned=5)
        client = MagicMock()
        client.rpc.return_value.execute.return_value = MagicMock(data=[row])
        seat_id = uuid4()

        seat = SupabaseSeatRepository(client).increment_if_available(seat_id, 1)

        client.rpc.assert_called_once_with(
            "reserve_seats", {"p_seat_id": str(seat_id), "p_count": 1}
        )
        assert seat is not None and seat.seats_assigned == 5

    def test_increment_refused(self) -> None:
        client = MagicMock()
        client.rpc.return_value.execute.return_value = MagicMock(data=[])

        assert SupabaseSeatRepository(client).increment_if_available(uuid4(), 3) is None

    def test_decrement_uses_release_function(self) -> None:
        client = MagicMock()
        client.rpc.return_value.execute.return_value = MagicMock(data=[_seat_row(seats_assigned=0)])
        seat_id = uuid4()

        seat = SupabaseSeatRepository(client).decrement(seat_id, 2)

        client.rpc.assert_called_once_with(
            "release_seats", {"p_seat_id": str(seat_id), "p_count": 2}
        )
        assert seat is not None and seat.seats_assigned == 0

    def test_get_active_filters(self) -> None:
        table = _chainable_table_mock([_seat_row()])
        partner_id, batch_id = uuid4(), uuid4()

        SupabaseSeatRepository(_client(table)).get_active(partner_id, batch_id)

        eq_calls = [c.args for c in table.eq.call_args_list]
        assert eq_calls == [
            ("partner_id", str(partner_id)),
            ("batch_id", str(batch_id)),
            ("is_active", True),
        ]

    def test_deactivate_only_active(self) -> None:
        table = _chainable_table_mock([])

        result = SupabaseSeatRepository(_client(table)).deactivate(uuid4(), uuid4())

        table.update.assert_called_once_with({"is_active": False})
        assert ("is_active", True) in [c.args for c in table.eq.call_args_list]
        assert result is None


# ---------------------------------------------------------------------------
# Partner-candidate links
# ---------------------------------------------------------------------------

class TestSupabasePartnerCandidateRepository:

    def _row(self, **overrides: object) -> dict:
        row = {
            "id": str(uuid4()),
            "partner_id": str(uuid4()),
            "candidate_id": str(uuid4()),
            "batch_id": None,
            "is_paid_for": False,
            "invite_status": "pending",
        }
        row.update(overrides)
        return row

    def test_list_page_counts_exact(self) -> None:
        table = _chainable_table_mock([self._row(), self._row()], count=7)
        partner_id = uuid4()

        links, total = SupabasePartnerCandidateRepository(_client(table)).list_page(partner_id, 20, 20)

        table.select.assert_called_once_with("*", count="exact")
        table.order.assert_called_once_with("invite_sent_at", desc=True)
        table.range.assert_called_once_with(20, 39)
        assert len(links) == 2
        assert total == 7

    def test_mark_accepted_is_conditional(self) -> None:
        table = _chainable_table_mock([])
        link_id = uuid4()

        result = SupabasePartnerCandidateRepository(_client(table)).mark_accepted(
            link_id, datetime(2026, 3, 1, tzinfo=timezone.utc)
        )

        assert ("invite_status", "pending") in [c.args for c in table.eq.call_args_list]
        assert result is None

    def test_assign_batch_only_unassigned(self) -> None:
        batch_id = uuid4()
        table = _chainable_table_mock([self._row(batch_id=str(batch_id), is_paid_for=True)])
        link_ids = [uuid4(), uuid4()]

        updated = SupabasePartnerCandidateRepository(_client(table)).assign_batch(link_ids, batch_id)

        table.update.assert_called_once_with({"batch_id": str(batch_id), "is_paid_for": True})
        table.in_.assert_called_once_with("id", [str(i) for i in link_ids])
        table.is_.assert_called_once_with("batch_id", "null")
        assert len(updated) == 1

    def test_create_many_maps_unique_violation(self) -> None:
        table = _chainable_table_mock()
        table.execute.side_effect = _duplicate_error()

        with pytest.raises(DuplicateRecordError):
            SupabasePartnerCandidateRepository(_client(table)).create_many(
                [PartnerCandidateCreate(partner_id=uuid4(), candidate_id=uuid4(), batch_id=uuid4())]
            )

    def test_count_by_batch_ignores_unbatched(self) -> None:
        batch_id = uuid4()
        table = _chainable_table_mock(
            [{"batch_id": str(batch_id)}, {"batch_id": str(batch_id)}, {"batch_id": None}]
        )

        counts = SupabasePartnerCandidateRepository(_client(table)).count_by_batch(uuid4())

        assert counts == {batch_id: 2}


# ---------------------------------------------------------------------------
# Enrollments and exams
# ---------------------------------------------------------------------------

class TestSupabaseEnrollmentRepository:

    def test_duplicate_enrollment(self) -> None:
        table = _chainable_table_mock()
        table.execute.side_effect = _duplicate_error()

        with pytest.raises(DuplicateRecordError):
            SupabaseEnrollmentRepository(_client(table)).create(
                ExamEnrollmentCreate(
                    user_id=uuid4(),
                    exam_id=uuid4(),
                    exam_date=datetime(2026, 6, 1).date(),
                    exam_practice_frequency="3",
                )
            )


class TestSupabaseExamRepository:

    def test_scenarios_missing_images_filter(self) -> None:
        exam_id = uuid4()
        table = _chainable_table_mock(
            [{"id": str(uuid4()), "exam_id": str(exam_id), "title": "Triage", "image_prompt": "ward"}]
        )
        client = _client(table)

        scenarios = SupabaseExamRepository(client).list_scenarios_missing_images(5)

        client.table.assert_called_with("exam_scenarios")
        is_calls = [c.args for c in table.is_.call_args_list]
        assert is_calls == [("image_url", "null"), ("image_prompt", "null")]
        table.limit.assert_called_once_with(5)
        assert scenarios[0].exam_id == exam_id
