"""Core shared logic for price histories, indicators, alerts and reports.

This package contains pure business logic with no I/O dependencies
(no network, console or file access). The tracker application in
``tracker/`` drives it on a schedule.
"""
