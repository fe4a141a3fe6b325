"""Appointment slot finder for a travelling technician."""

__version__ = "0.1.0"
