"""Tests for the Application model and UTC datetime column."""

from datetime import UTC, datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from interntrack.models import Application, UTCDateTime
from tests.conftest import make_application

_NOW = datetime(2026, 6, 10, 12, 0, tzinfo=UTC)


class TestDaysSince:
    def test_floors_partial_days(self):
        app = Application(application_date=_NOW - timedelta(days=3, hours=23))

        assert app.days_since(_NOW) == 3

    def test_same_moment_is_zero(self):
        assert Application(application_date=_NOW).days_since(_NOW) == 0


class TestUTCDateTime:
    def test_naive_values_tagged_as_utc(self):
        column_type = UTCDateTime()

        result = column_type.process_result_value(datetime(2026, 1, 1), None)

        assert result == datetime(2026, 1, 1, tzinfo=UTC)

    def test_bound_values_converted_to_utc(self):
        column_type = UTCDateTime()
        plus_two = timezone(timedelta(hours=2))

        bound = column_type.process_bind_param(
            datetime(2026, 1, 1, 12, tzinfo=plus_two), None
        )

        assert bound == datetime(2026, 1, 1, 10, tzinfo=UTC)
        assert bound.tzinfo == UTC

    async def test_round_trip_is_aware(self, db_session: AsyncSession):
        app = await make_application(db_session, application_date=_NOW)
        await db_session.commit()
        db_session.expunge_all()

        loaded = (
            await db_session.execute(select(Application).where(Application.id == app.id))
        ).scalar_one()

        assert loaded.application_date == _NOW
        assert loaded.created_at.tzinfo is not None
