"""API Routers package."""
from . import employees, master_data, schedule, reports, admin, advisor, events

__all__ = ['employees', 'master_data', 'schedule', 'reports', 'admin', 'advisor', 'events']
