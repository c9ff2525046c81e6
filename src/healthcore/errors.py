"""Exception types raised by the storage and calendar collaborators."""

from __future__ import annotations


class HealthCoreError(Exception):
    """Base class for healthcore errors."""


class CalendarNotConnected(HealthCoreError):
    """The user never connected a calendar. Not an outage."""


class CalendarUnavailable(HealthCoreError):
    """A connected calendar could not be read."""


class StoreUnavailable(HealthCoreError):
    """The record store could not be queried."""
