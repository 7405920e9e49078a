from typing import Optional, Sequence

from pydantic import BaseModel


class ErrorBody(BaseModel):
    """JSON body returned for every failed webhook request."""

    error: str
    code: str
    committed: Optional[list[str]] = None
    failed: Optional[list[str]] = None


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.code = code

    def to_body(self) -> ErrorBody:
        return ErrorBody(error=self.detail or self.title, code=self.code)


class ConfigurationError(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=500,
            title="Configuration error",
            detail=detail,
            code="configuration_error",
        )


class AuthError(DomainException):
    def __init__(self, detail: str = "unauthorized") -> None:
        super().__init__(
            status_code=401,
            title="Unauthorized",
            detail=detail,
            code="unauthorized",
        )


class UpstreamError(DomainException):
    """A record store read or write failed."""

    def __init__(self, detail: str, *, code: str = "upstream_error") -> None:
        super().__init__(
            status_code=500,
            title="Upstream failure",
            detail=detail,
            code=code,
        )


class NotFoundError(UpstreamError):
    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} '{record_id}' not found", code="record_not_found")
        self.kind = kind
        self.record_id = record_id


class StaleRecordError(UpstreamError):
    """A conditional write found a different status than the one it expected."""

    def __init__(self, record_id: str, expected: str | None, actual: str | None) -> None:
        super().__init__(
            f"match '{record_id}' status changed from {expected!r} to {actual!r}",
            code="stale_record",
        )
        self.record_id = record_id
        self.expected = expected
        self.actual = actual


class PartialCommitError(DomainException):
    """Some, but not all, of the writes for a match were applied."""

    def __init__(
        self,
        match_id: str,
        *,
        committed: Sequence[str],
        failed: Sequence[str],
        ratings: dict[str, dict[str, int]] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            status_code=500,
            title="Partial commit",
            detail=(
                f"match '{match_id}' was only partially updated; "
                f"committed={list(committed)} failed={list(failed)}"
            ),
            code="partial_commit",
        )
        self.match_id = match_id
        self.committed = list(committed)
        self.failed = list(failed)
        self.ratings = ratings or {}
        self.cause = cause

    def to_body(self) -> ErrorBody:
        return ErrorBody(
            error=self.detail or self.title,
            code=self.code,
            committed=self.committed,
            failed=self.failed,
        )
