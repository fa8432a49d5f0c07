"""Session engine - retry pacing, fix validation and the connection state machine.

Contains:
- GpsDateSession: Connect, wait for a trustworthy fix, commit it
- RetryPolicy: Bounded startup connect, unbounded reconnect
- validate: Accept/reject decision for one FixReport
"""

from .retry import RetryPolicy
from .session import GpsDateSession, SessionState, Committed, StreamLost
from .validator import validate, Verdict

__all__ = ['GpsDateSession', 'SessionState', 'Committed', 'StreamLost',
           'RetryPolicy', 'validate', 'Verdict']
