"""
Maintenance Service - housekeeping jobs

- CatalogRefresher: token catalog + market data → tracked_tokens, pool FDV
- MaintenanceJob: hourly rollup of 1m candles, then retention cleanup
- ActivityReporter: periodic event-source counters through the notifier
"""

from services.maintenance.activity import ActivityReporter
from services.maintenance.catalog import CatalogRefresher
from services.maintenance.retention import MaintenanceJob, ceil_hour, floor_hour

__all__ = ["ActivityReporter", "CatalogRefresher", "MaintenanceJob", "ceil_hour", "floor_hour"]
