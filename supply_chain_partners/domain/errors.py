from dataclasses import asdict, dataclass


class DomainError(Exception):
    """Base for domain-level errors."""


class ResourceNotFound(DomainError):
    pass


class ValidationFailed(DomainError):
    pass


class ConflictError(DomainError):
    pass


class ServiceUnavailable(DomainError):
    pass


class StorageError(DomainError):
    """Unexpected failure reported by the backing document store."""


class DuplicateRecord(StorageError):
    """Insert rejected by a unique index."""


MIRROR_MISSING = "mirror_missing"
MIRROR_WRITE_FAILED = "mirror_write_failed"


@dataclass(frozen=True)
class ConsistencyWarning:
    """A mirror operation did not complete after the primary one committed.

    Not raised: returned next to the successful result so the caller knows the
    pair may need reconciliation.
    """

    operation: str
    relationship_id: str
    mirror_self_address: str
    mirror_company_address: str
    reason: str
    detail: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)
