import pytest

from app.models import Category, Inventory, Product, Site, SyncRun
from app.models.sync_run import SyncStatus
from app.schemas.inventory_sync import RecordOutcome, SyncStats
from app.services.inventory_sync_service import InventorySyncError, InventorySyncService
from conftest import FakeLegacyReader, legacy_down, make_record


def run_to_end(service, site_code="007"):
    return list(service.iter_progress(site_code))


class TestSyncStats:
    def test_tally_counts_created_and_updated(self):
        stats = SyncStats(total_fetched=2)
        stats = stats.tally(RecordOutcome(site_created=True, category_created=True,
                                          product_created=True, inventory_created=True))
        stats = stats.tally(RecordOutcome(site_created=False, category_created=False,
                                          product_created=False, inventory_created=False))

        assert stats.sites_created == 1
        assert stats.categories_created == 1
        assert stats.products_created == 1
        assert stats.products_updated == 1
        assert stats.inventories_created == 1
        assert stats.inventories_updated == 1
        assert stats.errors == 0

    def test_tally_skips_steps_not_reached(self):
        stats = SyncStats().tally(RecordOutcome(site_created=True, category_created=False))

        assert stats.sites_created == 1
        assert stats.categories_created == 0
        assert stats.products_created == stats.products_updated == 0
        assert stats.inventories_created == stats.inventories_updated == 0

    def test_stats_are_not_mutated(self):
        stats = SyncStats()
        bumped = stats.with_error()

        assert stats.errors == 0
        assert bumped.errors == 1


class TestIterProgress:
    def test_first_sync_creates_everything(self, db_session):
        records = [make_record("1001"), make_record("1002"), make_record("1003", category_name="Paint")]
        service = InventorySyncService(db_session, FakeLegacyReader(records))

        events = run_to_end(service)

        final = events[-1]
        assert final.type == "complete"
        assert final.message == "Sync completed successfully!"
        assert final.current == final.total == 3
        assert final.errors == []
        assert final.stats == SyncStats(
            total_fetched=3,
            products_created=3,
            inventories_created=3,
            categories_created=2,
            sites_created=1,
        )
        assert db_session.query(Product).count() == 3
        assert db_session.query(Inventory).count() == 3
        assert db_session.query(Site).count() == 1

    def test_second_run_only_updates(self, db_session):
        reader = FakeLegacyReader([make_record("1001"), make_record("1002")])
        run_to_end(InventorySyncService(db_session, reader))

        reader.records = [make_record("1001", on_hand_quantity=3), make_record("1002")]
        final = run_to_end(InventorySyncService(db_session, reader))[-1]

        assert final.stats.products_created == 0
        assert final.stats.products_updated == 2
        assert final.stats.inventories_created == 0
        assert final.stats.inventories_updated == 2
        assert final.stats.categories_created == 0
        assert final.stats.sites_created == 0
        assert db_session.query(Product).count() == 2
        assert db_session.query(Inventory).count() == 2

    def test_event_sequence(self, db_session):
        records = [make_record("1001", name="Claw Hammer"), make_record("1002", name="x" * 80)]
        events = run_to_end(InventorySyncService(db_session, FakeLegacyReader(records)))

        assert [e.type for e in events] == ["progress"] * 5 + ["complete"]
        assert events[0].message == "Fetching data from legacy system..."
        assert (events[0].current, events[0].total) == (0, 0)
        assert events[1].message == "Found 2 items to sync"
        assert events[1].total == 2
        assert events[2].message == "Syncing: Claw Hammer..."
        assert events[2].current == 1
        assert events[3].message == f"Syncing: {'x' * 50}..."
        assert events[3].current == 2
        assert events[4].message == "Updating category counts..."
        assert events[4].current == 2

    def test_current_never_decreases(self, db_session):
        records = [make_record(str(n)) for n in range(1, 6)]
        events = run_to_end(InventorySyncService(db_session, FakeLegacyReader(records)))

        currents = [e.current for e in events]
        assert currents == sorted(currents)
        assert all(e.current <= e.total for e in events[1:])

    def test_failing_record_is_skipped(self, db_session):
        records = [make_record("1001"), make_record("1002", retail_price=-5), make_record("1003")]
        events = run_to_end(InventorySyncService(db_session, FakeLegacyReader(records)))

        final = events[-1]
        assert final.type == "complete"
        assert final.stats.errors == 1
        assert final.stats.products_created == 2
        assert len(final.errors) == 1
        assert final.errors[0].startswith("Error syncing 1002: ")
        # No progress frame for the failed record
        assert [e.current for e in events if e.message.startswith("Syncing:")] == [1, 3]
        assert {p.barcode for p in db_session.query(Product).all()} == {"1001", "1003"}

    def test_failing_record_still_counts_rows_it_created(self, db_session):
        records = [make_record("2001", site_code="009", site_name="Tarlac Branch",
                               category_name="Paint", retail_price=-5)]
        final = run_to_end(InventorySyncService(db_session, FakeLegacyReader(records)))[-1]

        assert final.type == "complete"
        assert final.stats.errors == 1
        assert final.stats.sites_created == db_session.query(Site).count() == 1
        assert final.stats.categories_created == db_session.query(Category).count() == 1
        assert final.stats.products_created == final.stats.products_updated == 0
        assert final.stats.inventories_created == final.stats.inventories_updated == 0

    def test_empty_fetch_completes(self, db_session):
        final = run_to_end(InventorySyncService(db_session, FakeLegacyReader([])))[-1]

        assert final.type == "complete"
        assert final.total == 0
        assert final.stats == SyncStats()

    def test_legacy_failure_ends_with_error_event(self, db_session):
        events = run_to_end(InventorySyncService(db_session, legacy_down()))

        assert [e.type for e in events] == ["progress", "error"]
        assert "connection refused" in events[-1].message
        assert db_session.query(Product).count() == 0

    def test_empty_site_code_is_rejected(self, db_session):
        reader = FakeLegacyReader([make_record("1001")])
        service = InventorySyncService(db_session, reader)

        with pytest.raises(ValueError, match="Site code is required"):
            run_to_end(service, "  ")
        assert reader.calls == []

    def test_category_counts_reflect_published_products(self, db_session):
        records = [make_record("1001"), make_record("1002"), make_record("1003", category_name="Paint")]
        run_to_end(InventorySyncService(db_session, FakeLegacyReader(records)))

        counts = {c.slug: c.item_count for c in db_session.query(Category).all()}
        assert counts == {"hand-tools-equipment": 2, "paint": 1}

        product = db_session.query(Product).filter(Product.barcode == "1001").one()
        product.is_published = False
        db_session.commit()
        run_to_end(InventorySyncService(db_session, FakeLegacyReader(records)))

        counts = {c.slug: c.item_count for c in db_session.query(Category).all()}
        assert counts == {"hand-tools-equipment": 1, "paint": 1}


class TestSyncRuns:
    def test_successful_run_is_recorded(self, db_session):
        service = InventorySyncService(db_session, FakeLegacyReader([make_record("1001")]))
        run_to_end(service)

        run = db_session.query(SyncRun).one()
        assert run.site_code == "007"
        assert run.status == SyncStatus.SUCCESS.value
        assert run.completed_at is not None
        assert run.stats["productsCreated"] == 1
        assert run.errors == []

    def test_failed_run_is_recorded(self, db_session):
        run_to_end(InventorySyncService(db_session, legacy_down()))

        run = db_session.query(SyncRun).one()
        assert run.status == SyncStatus.FAILED.value
        assert "connection refused" in run.error_message

    def test_abandoned_stream_marks_run_cancelled(self, db_session):
        records = [make_record("1001"), make_record("1002")]
        events = InventorySyncService(db_session, FakeLegacyReader(records)).iter_progress("007")
        next(events)
        next(events)
        events.close()

        run = db_session.query(SyncRun).one()
        assert run.status == SyncStatus.FAILED.value
        assert run.error_message == "Sync cancelled"

    def test_list_runs_latest_first(self, db_session):
        reader = FakeLegacyReader([make_record("1001")])
        run_to_end(InventorySyncService(db_session, reader), "007")
        run_to_end(InventorySyncService(db_session, reader), "008")

        runs = InventorySyncService(db_session, reader).list_runs(limit=1)
        assert [r.site_code for r in runs] == ["008"]


class TestSynchronize:
    def test_returns_summary_and_feeds_sink(self, db_session):
        received = []
        service = InventorySyncService(db_session, FakeLegacyReader([make_record("1001")]))

        summary = service.synchronize("007", sink=received.append)

        assert summary.site_code == "007"
        assert summary.stats.products_created == 1
        assert summary.errors == []
        assert received[-1].type == "complete"
        assert len(received) == 5

    def test_raises_on_error_event(self, db_session):
        received = []
        service = InventorySyncService(db_session, legacy_down())

        with pytest.raises(InventorySyncError, match="connection refused"):
            service.synchronize("007", sink=received.append)
        assert received[-1].type == "error"
