"""
Legacy inventory synchronization

Pulls one site's on-hand inventory from the legacy system and reconciles it
into sites, categories, products and inventories, reporting progress as a
stream of ProgressEvent values. Records are processed one at a time; a failing
record is logged and counted, and the run moves on to the next one.
"""
from sqlalchemy.orm import Session
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional
import logging

from app.config import settings
from app.legacy.inventory_reader import LegacyInventoryReader, get_legacy_reader
from app.models.sync_run import SyncRun, SyncStatus
from app.schemas.inventory_sync import ProgressEvent, SyncStats, SyncSummary
from app.services.catalog_sync import RecordSyncError, sync_record
from app.services.category_service import CategoryService

logger = logging.getLogger(__name__)

ProgressSink = Callable[[ProgressEvent], None]


class InventorySyncError(Exception):
    """A sync run ended with an error event instead of a summary"""


class InventorySyncService:
    """Service layer for legacy inventory sync runs"""

    def __init__(self, db: Session, reader: Optional[LegacyInventoryReader] = None):
        self.db = db
        self.reader = reader if reader is not None else get_legacy_reader()

    def _start_run(self, site_code: str) -> SyncRun:
        run = SyncRun(site_code=site_code, status=SyncStatus.RUNNING.value)
        self.db.add(run)
        self.db.commit()
        self.db.refresh(run)
        return run

    def _finish_run(
        self,
        run: SyncRun,
        status: SyncStatus,
        stats: Optional[SyncStats] = None,
        errors: Optional[List[str]] = None,
        error_message: Optional[str] = None,
    ):
        try:
            run.status = status.value
            run.completed_at = datetime.now(timezone.utc)
            run.stats = stats.model_dump(by_alias=True) if stats else None
            run.errors = errors
            run.error_message = error_message[:500] if error_message else None
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to record sync run {run.id}: {e}", exc_info=True)

    def iter_progress(self, site_code: str) -> Iterator[ProgressEvent]:
        """Run a sync for `site_code`, yielding progress as it goes

        The last event is either `complete` (carrying stats and the per-record
        error list) or `error` (the run could not proceed). Raises ValueError
        before yielding anything if the site code is empty.
        """
        if not site_code or not site_code.strip():
            raise ValueError("Site code is required")

        run = self._start_run(site_code)
        stats = SyncStats()
        errors: List[str] = []
        total = 0

        try:
            yield ProgressEvent(
                type="progress",
                current=0,
                total=0,
                message="Fetching data from legacy system..."
            )

            records = self.reader.fetch_inventory(site_code)
            total = len(records)
            stats = stats.model_copy(update={"total_fetched": total})

            yield ProgressEvent(
                type="progress",
                current=0,
                total=total,
                message=f"Found {total} items to sync",
                stats=stats
            )

            for index, record in enumerate(records):
                try:
                    outcome = sync_record(self.db, record)
                except RecordSyncError as e:
                    self.db.rollback()
                    stats = stats.tally(e.outcome).with_error()
                    error_message = f"Error syncing {record.barcode}: {e}"
                    errors.append(error_message)
                    logger.warning(error_message)
                    continue

                stats = stats.tally(outcome)
                yield ProgressEvent(
                    type="progress",
                    current=index + 1,
                    total=total,
                    message=f"Syncing: {record.name[:settings.sync_progress_name_length]}...",
                    stats=stats
                )

            yield ProgressEvent(
                type="progress",
                current=total,
                total=total,
                message="Updating category counts...",
                stats=stats
            )

            CategoryService(self.db).update_category_counts()

        except GeneratorExit:
            # Consumer went away (client disconnected); nothing more can be sent
            self.db.rollback()
            logger.warning(f"Sync for site {site_code} cancelled after {stats.total_fetched} fetched")
            self._finish_run(run, SyncStatus.FAILED, stats, errors, "Sync cancelled")
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Sync for site {site_code} failed: {e}", exc_info=True)
            self._finish_run(run, SyncStatus.FAILED, error_message=str(e))
            message = str(e) or type(e).__name__
            yield ProgressEvent(
                type="error",
                current=0,
                total=0,
                message=message,
                errors=[message]
            )
            return

        self._finish_run(run, SyncStatus.SUCCESS, stats, errors)
        logger.info(
            f"Sync for site {site_code} completed: {stats.model_dump()}"
        )

        yield ProgressEvent(
            type="complete",
            current=total,
            total=total,
            message="Sync completed successfully!",
            stats=stats,
            errors=errors
        )

    def synchronize(self, site_code: str, sink: Optional[ProgressSink] = None) -> SyncSummary:
        """Run a sync to completion, pushing every event into `sink`"""
        summary = None
        for event in self.iter_progress(site_code):
            if sink is not None:
                sink(event)
            if event.type == "complete":
                summary = SyncSummary(site_code=site_code, stats=event.stats, errors=event.errors or [])
            elif event.type == "error":
                raise InventorySyncError(event.message)
        return summary

    def list_runs(self, limit: Optional[int] = None) -> List[SyncRun]:
        """Most recent sync runs first"""
        return (
            self.db.query(SyncRun)
            .order_by(SyncRun.started_at.desc())
            .limit(limit or settings.sync_history_limit)
            .all()
        )
