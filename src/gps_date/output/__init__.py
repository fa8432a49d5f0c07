"""Output adapters - host clock."""

from .clock_setter import ClockSetter, CommitOutcome

__all__ = ['ClockSetter', 'CommitOutcome']
