"""Read-only access to the legacy inventory system (SQL Server)"""
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import List, Optional, Callable

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.config import settings
from app.db.legacy import get_legacy_engine
from app.schemas.inventory_sync import LegacyInventoryRecord, LegacySite

logger = logging.getLogger(__name__)


class LegacySourceError(Exception):
    """The legacy system could not be queried"""


INVENTORY_QUERY = text("""
    SELECT
      a.Barcode AS barcode,
      a.productCode AS productCode,
      a.name AS name,
      a.retailPrice AS retailPrice,
      iq.onHandQuantity AS onHandQuantity,
      a.baseUnitCode AS baseUnitCode,
      c.name AS categoryName,
      c.categoryId AS categoryId,
      s.siteCode AS siteCode,
      s.name AS siteName
    FROM Product AS a
    LEFT JOIN dbo.InventoryQuantity AS iq ON a.productCode = iq.productCode
    LEFT JOIN dbo.Site AS s ON iq.siteCode = s.siteCode
    LEFT JOIN dbo.Category AS c ON a.departmentId = c.categoryId
    WHERE iq.siteCode = :site_code
      AND a.isConcession = '0'
      AND a.status = 'A'
      AND iq.onHandQuantity > 0
      AND c.name NOT LIKE '%Consignment%'
    ORDER BY iq.updateDate DESC
""")

SITES_QUERY = text("""
    SELECT s.siteCode AS siteCode, s.name AS siteName
    FROM dbo.Site AS s
    ORDER BY s.siteCode
""")


def _to_float(value) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def row_to_record(row) -> LegacyInventoryRecord:
    """Map a legacy result row, substituting defaults for NULL columns"""
    return LegacyInventoryRecord(
        barcode=row.get("barcode") or "",
        product_code=row.get("productCode") or "",
        name=row.get("name") or "",
        retail_price=_to_float(row.get("retailPrice")),
        on_hand_quantity=_to_float(row.get("onHandQuantity")),
        base_unit_code=row.get("baseUnitCode") or "PC",
        category_name=row.get("categoryName") or "Uncategorized",
        category_id=str(row.get("categoryId") or ""),
        site_code=row.get("siteCode") or "",
        site_name=row.get("siteName") or "",
    )


class LegacyInventoryReader:
    """Queries on-hand inventory from the legacy system

    Each query runs on a worker thread and the caller stops waiting after
    `timeout` seconds. The worker itself is not interrupted: it keeps its
    pooled connection until the driver's query timeout (set on every legacy
    connection by app.db.legacy.apply_query_timeout) aborts the statement.
    """

    def __init__(self, engine_factory: Callable[[], Engine] = get_legacy_engine, timeout: Optional[float] = None):
        self.engine_factory = engine_factory
        self.timeout = timeout if timeout is not None else settings.legacy_query_timeout

    def _run(self, query, params: Optional[dict] = None) -> List[dict]:
        engine = self.engine_factory()
        with engine.connect() as conn:
            result = conn.execute(query, params or {})
            return [dict(row) for row in result.mappings()]

    def _run_with_timeout(self, query, params: Optional[dict] = None) -> List[dict]:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="legacy-query")
        try:
            future = executor.submit(self._run, query, params)
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            logger.error(f"Legacy query timed out after {self.timeout}s")
            raise LegacySourceError(f"Legacy system did not respond within {self.timeout:g} seconds")
        except LegacySourceError:
            raise
        except Exception as e:
            logger.error(f"Legacy query failed: {e}", exc_info=True)
            raise LegacySourceError(f"Legacy system query failed: {e}") from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def fetch_inventory(self, site_code: str) -> List[LegacyInventoryRecord]:
        """Eligible inventory rows for a site, most recently updated first"""
        logger.info(f"Fetching legacy inventory for site {site_code}")
        rows = self._run_with_timeout(INVENTORY_QUERY, {"site_code": site_code})
        records = [row_to_record(row) for row in rows]
        logger.info(f"Fetched {len(records)} legacy inventory rows for site {site_code}")
        return records

    def list_sites(self) -> List[LegacySite]:
        rows = self._run_with_timeout(SITES_QUERY)
        return [
            LegacySite(code=row.get("siteCode") or "", name=row.get("siteName") or "")
            for row in rows
            if row.get("siteCode")
        ]


# Singleton instance
_legacy_reader: Optional[LegacyInventoryReader] = None


def get_legacy_reader() -> LegacyInventoryReader:
    """Get the legacy inventory reader singleton"""
    global _legacy_reader
    if _legacy_reader is None:
        _legacy_reader = LegacyInventoryReader()
    return _legacy_reader
