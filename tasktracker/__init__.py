"""tasktracker - Task Tracker REST API."""
