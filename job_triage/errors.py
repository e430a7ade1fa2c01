"""
Exception types.

Two families:
- FatalError: the operator has to do something (log in, start Chrome, add a
  resume). The run stops; everything committed so far stays on disk.
- ItemError: one job posting failed. Logged, counted, and left for the next run.
"""


class TriageError(Exception):
    """Base class for all job_triage errors."""


# =============================================================================
# Fatal (operator-actionable)
# =============================================================================

class FatalError(TriageError):
    pass


class ConfigError(FatalError):
    pass


class ProfileMissing(FatalError):
    pass


class SessionUnavailable(FatalError):
    """No Chrome with remote debugging reachable; message carries the fix."""


class AuthenticationRequired(FatalError):
    pass


class PageLoadError(FatalError):
    """The job list container did not (re)appear within the page timeout."""


class LedgerCorrupt(FatalError):
    pass


# =============================================================================
# Per-item (recoverable)
# =============================================================================

class ItemError(TriageError):
    pass


class ClassificationFailed(ItemError):
    pass


class ServiceError(ClassificationFailed):
    """The model call itself failed (network, auth, rate limit, ...)."""


class ResponseValidationError(ClassificationFailed):
    """The model answered, but not with something we can store."""
