"""
Application-level constants.

These values are not meant to be changed through the environment. Configurable values
live in letmeknow/settings.py.
"""

# ============================================================================
# Logging
# ============================================================================

# Upper bound for a single JSON log record; longer messages are truncated
MAX_LOG_RECORD_SIZE_BYTES = 65536


# ============================================================================
# Metrics
# ============================================================================

# Histogram buckets (seconds) for a single notification fan-out pass
FANOUT_DURATION_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
