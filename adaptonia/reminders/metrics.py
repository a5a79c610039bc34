from prometheus_client import Counter


reminders_created_total = Counter(
    "reminders_created_total",
    "Total reminders created via API",
)

scheduler_scans_total = Counter(
    "reminder_scheduler_scans_total",
    "Total due-reminder selection cycles",
)

reminders_dispatch_success_total = Counter(
    "reminders_dispatch_success_total",
    "Total successful email dispatches",
)

reminders_dispatch_failed_total = Counter(
    "reminders_dispatch_failed_total",
    "Total failed email dispatch attempts",
)

reminders_exhausted_total = Counter(
    "reminders_exhausted_total",
    "Total reminders marked failed after reaching the retry ceiling",
)

reminders_claim_skipped_total = Counter(
    "reminders_claim_skipped_total",
    "Total reminders skipped because another cycle held the dispatch claim",
)

reminder_status_write_errors_total = Counter(
    "reminder_status_write_errors_total",
    "Total status writes that raised during dispatch",
)
