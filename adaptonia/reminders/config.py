from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class ReminderSettings(BaseSettings):
    # Lifecycle
    MAX_RETRIES: int = 3

    # Selection
    DUE_BATCH_SIZE: int = 10          # per-user due check
    PENDING_BATCH_SIZE: int = 100     # per-user lookahead
    PENDING_WINDOW_HOURS: int = 24

    # Dispatch
    DISPATCH_TIMEOUT_SECONDS: float = 15.0
    CLAIM_LEASE_SECONDS: int = 300    # 0 disables the dispatch claim
    NOTIFIER_CAPACITY: int = 10000

    # Celery configuration
    CELERY_BROKER_URL: str = "memory://"
    CELERY_RESULT_BACKEND: Optional[str] = None
    CELERY_QUEUE: str = "reminders"
    WORKER_CONCURRENCY: int = 4

    # Scheduling
    SCHEDULER_SCAN_INTERVAL_SECONDS: int = 300
    SCHEDULER_BATCH_SIZE: int = 25

    model_config = SettingsConfigDict(env_prefix="REMINDER_", env_file=".env", extra="ignore")


settings = ReminderSettings()
