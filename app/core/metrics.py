"""
Prometheus metrics for the live odds mirror.

Metrics exposed:
- Upstream (bookiesapi.com) request counters by task and outcome
- Sync run counters by job and status
- Rows written per entity
- Scheduler status gauges
"""
from prometheus_client import Counter, Gauge

upstream_requests_total = Counter(
    "upstream_requests_total",
    "Requests made to the upstream odds provider",
    ["task", "outcome"]
)

sync_runs_total = Counter(
    "sync_runs_total",
    "Completed sync runs",
    ["job", "status"]
)

synced_rows_total = Counter(
    "synced_rows_total",
    "Rows upserted into the mirror",
    ["entity"]
)

scheduler_running = Gauge(
    "scheduler_running",
    "Whether the sync scheduler is running (1=running, 0=stopped)"
)

scheduler_jobs_total = Gauge(
    "scheduler_jobs_total",
    "Number of scheduled sync jobs"
)


def record_upstream_request(task: str, outcome: str) -> None:
    """Count one upstream call; outcome is success, transport_error or decode_error."""
    upstream_requests_total.labels(task=task, outcome=outcome).inc()


def record_sync_run(job: str, status: str, rows: int = 0, entity: str | None = None) -> None:
    """Count a finished sync run and the rows it wrote."""
    sync_runs_total.labels(job=job, status=status).inc()
    if entity and rows:
        synced_rows_total.labels(entity=entity).inc(rows)


def update_scheduler_metrics():
    """Refresh scheduler gauges from the global scheduler."""
    from app.core.scheduler import get_scheduler

    scheduler = get_scheduler()
    if scheduler and scheduler.running:
        scheduler_running.set(1)
        if scheduler.scheduler:
            scheduler_jobs_total.set(len(scheduler.scheduler.get_jobs()))
    else:
        scheduler_running.set(0)
        scheduler_jobs_total.set(0)
