"""Governance timing and thresholds."""

from datetime import timedelta

VOTING_PERIOD = timedelta(days=3)
EXECUTION_WINDOW = timedelta(days=7)
# Participation (for + against) needed, as a share of total snapshot weight
QUORUM_THRESHOLD_BPS = 6666
