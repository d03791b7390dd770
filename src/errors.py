"""Error types raised by the breed matching core.

Every error carries the ``stage`` that failed and whether a caller may
retry the same request unchanged.
"""

from __future__ import annotations


class BreedMatchError(Exception):
    """Base class for all breed matching errors."""

    stage: str = "core"
    retryable: bool = False

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage


class InvalidQuizAnswer(BreedMatchError):
    """One or more quiz questions are unanswered or have unknown values."""

    stage = "validation"

    def __init__(
        self,
        missing: list[str] | None = None,
        invalid: list[str] | None = None,
    ) -> None:
        self.missing = sorted(missing or [])
        self.invalid = sorted(invalid or [])
        parts = []
        if self.missing:
            parts.append(f"missing answers: {', '.join(self.missing)}")
        if self.invalid:
            parts.append(f"invalid answers: {', '.join(self.invalid)}")
        super().__init__("; ".join(parts) or "invalid quiz answers")


class InvalidIdentity(BreedMatchError):
    """A submission must carry exactly one of user id or session id."""

    stage = "validation"


class ExternalResponseMalformed(BreedMatchError):
    """The narrative collaborator returned output violating its contract."""

    stage = "narrative"
    retryable = True


class ExternalUnavailable(BreedMatchError):
    """An external collaborator timed out, failed or is not configured."""

    stage = "narrative"
    retryable = True


class TooManyBreeds(BreedMatchError):
    """A comparison set is larger than the allowed maximum."""

    stage = "comparison"


class BreedNotFound(BreedMatchError):
    """No breed exists for the given id or name."""

    stage = "lookup"


class CatalogTooSmall(BreedMatchError):
    """The catalog has fewer breeds than the number of matches required."""

    stage = "scoring"


class ComparisonNotFound(BreedMatchError):
    """No saved comparison exists for the given id."""

    stage = "lookup"


class AccessDenied(BreedMatchError):
    """The caller does not own the saved comparison it tried to change."""

    stage = "ownership"
