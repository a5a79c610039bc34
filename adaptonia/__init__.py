"""
Adaptonia reminder service.

Stores goal reminders, dispatches due reminder emails and exposes the HTTP
endpoints used by the app and the scheduler.
"""
