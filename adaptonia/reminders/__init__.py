"""Reminder lifecycle (store, selector, dispatcher, status writer, scheduler).

The HTTP surface lives in ``adaptonia.api``; the Celery worker and beat
schedule in ``adaptonia.reminders.celery_app`` run the same dispatch cycle.
"""
