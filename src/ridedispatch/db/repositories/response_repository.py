"""Response ledger repository."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...responses import TERMINAL_RESPONSES, ResponseRecord, RiderResponse
from ..schema import RideRequestResponse
from ..transaction import savepoint

TERMINAL_VALUES = [r.value for r in TERMINAL_RESPONSES]


class ResponseRepository:
    """Upsert-only ledger of rider responses keyed by (request_id, rider_id)."""

    def __init__(self, session: Session):
        self.session = session

    def record(
        self,
        request_id: str,
        rider_id: str,
        response: RiderResponse,
        now: datetime,
        response_time_seconds: int | None = None,
    ) -> ResponseRecord:
        """Write the pair's response, leaving a declined or timeout row untouched."""
        if not self._overwrite(request_id, rider_id, response, now, response_time_seconds):
            try:
                with savepoint(self.session):
                    self.session.add(
                        RideRequestResponse(
                            request_id=request_id,
                            rider_id=rider_id,
                            response=response.value,
                            response_time_seconds=response_time_seconds,
                            created_at=now,
                            updated_at=now,
                        )
                    )
                    self.session.flush()
            except IntegrityError:
                # Row exists: either terminal or inserted concurrently
                self._overwrite(request_id, rider_id, response, now, response_time_seconds)

        record = self.get(request_id, rider_id)
        assert record is not None
        return record

    def _overwrite(
        self,
        request_id: str,
        rider_id: str,
        response: RiderResponse,
        now: datetime,
        response_time_seconds: int | None,
    ) -> bool:
        values: dict[str, object] = {"response": response.value, "updated_at": now}
        if response_time_seconds is not None:
            values["response_time_seconds"] = response_time_seconds

        stmt = (
            update(RideRequestResponse)
            .where(
                RideRequestResponse.request_id == request_id,
                RideRequestResponse.rider_id == rider_id,
                RideRequestResponse.response.notin_(TERMINAL_VALUES),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount > 0

    def get(self, request_id: str, rider_id: str) -> ResponseRecord | None:
        stmt = (
            select(RideRequestResponse)
            .where(
                RideRequestResponse.request_id == request_id,
                RideRequestResponse.rider_id == rider_id,
            )
            .execution_options(populate_existing=True)
        )
        row = self.session.execute(stmt).scalars().first()
        return self._to_domain(row) if row else None

    def list_for_request(self, request_id: str) -> list[ResponseRecord]:
        stmt = (
            select(RideRequestResponse)
            .where(RideRequestResponse.request_id == request_id)
            .order_by(RideRequestResponse.created_at)
        )
        result = self.session.execute(stmt)
        return [self._to_domain(r) for r in result.scalars().all()]

    def _to_domain(self, row: RideRequestResponse) -> ResponseRecord:
        return ResponseRecord(
            request_id=row.request_id,
            rider_id=row.rider_id,
            response=RiderResponse(row.response),
            response_time_seconds=row.response_time_seconds,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
