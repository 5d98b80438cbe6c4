"""Atomic replace of a participant's stored result for a week.

Every refresh throws away the previous activity, its efforts and its
result and writes the new ones, all in one transaction. Updating rows in
place would leave efforts from an older upstream state (a lap that has
since been trimmed, a PR flag Strava has since moved) mixed in with the new.
"""
import logging
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from league.core.errors import PersistenceError
from league.models.activity import StoredActivity
from league.models.result import Result
from league.models.segment_effort import StoredEffort
from league.services.matcher import MatchedActivity
from league.services.seasons import WeekTarget

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredResult:
    week_id: int
    participant_id: int
    activity_id: int
    external_id: int
    total_time_seconds: int
    effort_count: int


def _delete_activities(db: Session, activity_ids: list[int]) -> None:
    # Children first so it works without ON DELETE CASCADE (SQLite)
    if not activity_ids:
        return
    db.query(StoredEffort).filter(StoredEffort.activity_id.in_(activity_ids)).delete(synchronize_session=False)
    db.query(Result).filter(Result.activity_id.in_(activity_ids)).delete(synchronize_session=False)
    db.query(StoredActivity).filter(StoredActivity.id.in_(activity_ids)).delete(synchronize_session=False)


class ResultReconciler:
    def replace(
        self,
        db: Session,
        week: WeekTarget,
        participant_id: int,
        match: MatchedActivity,
    ) -> StoredResult:
        """Swap whatever is stored for (week, participant) for `match`.

        All-or-nothing: on any database error the session is rolled back and
        PersistenceError raised, leaving the previous rows untouched.
        """
        detail, window = match.detail, match.window
        try:
            existing = [
                a_id
                for (a_id,) in db.query(StoredActivity.id)
                .filter(StoredActivity.week_id == week.id)
                .filter(StoredActivity.participant_id == participant_id)
                .all()
            ]
            _delete_activities(db, existing)
            # Result rows without an activity (rebuilt or legacy) go too
            db.query(Result).filter(Result.week_id == week.id).filter(
                Result.participant_id == participant_id
            ).delete(synchronize_session=False)
            db.flush()

            activity = StoredActivity(
                week_id=week.id,
                participant_id=participant_id,
                external_id=detail.external_id,
                name=detail.name,
                occurred_at=detail.occurred_at,
                device_name=detail.device_name,
            )
            db.add(activity)
            db.flush()

            for effort_index, (lap_index, attempt) in enumerate(zip(window.lap_indices, window.attempts)):
                db.add(
                    StoredEffort(
                        activity_id=activity.id,
                        segment_id=attempt.segment_id,
                        external_id=attempt.external_id,
                        effort_index=effort_index,
                        lap_index=lap_index,
                        elapsed_seconds=attempt.elapsed_seconds,
                        occurred_at=attempt.occurred_at,
                        pr_achieved=attempt.is_personal_record,
                    )
                )

            total = sum(a.elapsed_seconds for a in window.attempts)
            db.add(
                Result(
                    week_id=week.id,
                    participant_id=participant_id,
                    activity_id=activity.id,
                    total_time_seconds=total,
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            log.error("Storing result for week %s participant %s failed: %s", week.id, participant_id, e)
            raise PersistenceError(
                f"Could not store result for week {week.id}, participant {participant_id}"
            ) from e

        log.info(
            "Stored activity %s for week %s participant %s (replaced %d): %ds over %d efforts",
            detail.external_id, week.id, participant_id, len(existing), total, len(window.attempts),
        )
        return StoredResult(
            week_id=week.id,
            participant_id=participant_id,
            activity_id=activity.id,
            external_id=detail.external_id,
            total_time_seconds=total,
            effort_count=len(window.attempts),
        )

    def remove_activity(self, db: Session, external_id: int) -> int:
        """Drop every stored copy of an upstream activity (deleted on Strava).

        Returns how many weeks lost their result.
        """
        try:
            ids = [
                a_id
                for (a_id,) in db.query(StoredActivity.id).filter(StoredActivity.external_id == external_id).all()
            ]
            _delete_activities(db, ids)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Could not remove activity {external_id}") from e
        return len(ids)

    def rebuild_results(self, db: Session, week_id: int) -> int:
        """Re-derive every result row of a week from its activities + efforts."""
        try:
            db.query(Result).filter(Result.week_id == week_id).delete(synchronize_session=False)
            totals = (
                db.query(
                    StoredActivity.id,
                    StoredActivity.participant_id,
                    func.sum(StoredEffort.elapsed_seconds),
                )
                .join(StoredEffort, StoredEffort.activity_id == StoredActivity.id)
                .filter(StoredActivity.week_id == week_id)
                .group_by(StoredActivity.id, StoredActivity.participant_id)
                .all()
            )
            for activity_id, participant_id, total in totals:
                db.add(
                    Result(
                        week_id=week_id,
                        participant_id=participant_id,
                        activity_id=activity_id,
                        total_time_seconds=int(total),
                    )
                )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Could not rebuild results for week {week_id}") from e
        return len(totals)
