"""Data models shared between the gpsd client and the session engine."""

from .fix_report import FixReport, FixStatus, FixField

__all__ = ['FixReport', 'FixStatus', 'FixField']
