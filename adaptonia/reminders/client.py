"""HTTP client for other backends that create reminders or trigger dispatch."""
from typing import Any, Dict, List, Optional
import os

import requests


def _resolve_base_url() -> str:
    """Resolve the Adaptonia API base URL from env variables.
    Tries ADAPTONIA_API_URL, then ADAPTONIA_API_HOST/ADAPTONIA_API_PORT.
    Raises RuntimeError if not configured.
    """
    base_url = os.getenv("ADAPTONIA_API_URL")
    if not base_url:
        host = os.getenv("ADAPTONIA_API_HOST")
        port = os.getenv("ADAPTONIA_API_PORT")
        if host and port:
            base_url = f"http://{host}:{port}"
    if not base_url:
        raise RuntimeError("ADAPTONIA_API_URL/host:port not configured")
    return base_url.rstrip("/")


def _build_headers(cron_secret: Optional[str] = None) -> Dict[str, str]:
    headers: Dict[str, str] = {"Content-Type": "application/json"}
    if cron_secret:
        headers["Authorization"] = f"Bearer {cron_secret}"
    return headers


def push_create_reminder(payload: Dict[str, Any], timeout: int = 10) -> requests.Response:
    """POST a reminder create payload (camelCase keys)."""
    url = f"{_resolve_base_url()}/api/v1/reminders"
    return requests.post(url, json=payload, headers=_build_headers(), timeout=timeout)


def fetch_due_notifications(user_id: str, timeout: int = 30) -> List[Dict[str, Any]]:
    """Trigger dispatch of a user's due reminders and return the notifications."""
    url = f"{_resolve_base_url()}/api/v1/notifications/due"
    r = requests.post(url, json={"userId": user_id}, headers=_build_headers(), timeout=timeout)
    r.raise_for_status()
    return list(r.json().get("notifications", []))


def fetch_pending_reminders(user_id: str, timeout: int = 10) -> List[Dict[str, Any]]:
    """Pending reminders for a user due within the next 24 hours."""
    url = f"{_resolve_base_url()}/api/v1/reminders/pending"
    r = requests.post(url, json={"userId": user_id}, headers=_build_headers(), timeout=timeout)
    r.raise_for_status()
    return list(r.json().get("reminders", []))


def send_goal_reminder_email(
    to: str,
    goal_title: str,
    user_name: Optional[str] = None,
    goal_description: Optional[str] = None,
    due_date: Optional[str] = None,
    timeout: int = 15,
) -> str:
    """Send a one-off goal reminder email and return the provider message id."""
    payload: Dict[str, Any] = {"to": to, "goalTitle": goal_title}
    if user_name is not None:
        payload["userName"] = user_name
    if goal_description is not None:
        payload["goalDescription"] = goal_description
    if due_date is not None:
        payload["dueDate"] = due_date
    url = f"{_resolve_base_url()}/api/v1/notifications/reminder"
    r = requests.post(url, json=payload, headers=_build_headers(), timeout=timeout)
    r.raise_for_status()
    return r.json()["id"]


def trigger_email_reminders(cron_secret: str, timeout: int = 60) -> Dict[str, Any]:
    """Run the scheduled all-users cycle over HTTP."""
    url = f"{_resolve_base_url()}/api/v1/cron/email-reminders"
    r = requests.get(url, headers=_build_headers(cron_secret), timeout=timeout)
    r.raise_for_status()
    return r.json()
