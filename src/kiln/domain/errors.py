class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class InvalidEntryKindError(AppError):
    pass


class InvalidSnapshotFormatError(AppError):
    pass


class PersistenceWriteError(AppError):
    """Storage write failed. The in-memory state is still authoritative."""


class MalformedPersistedStateError(AppError):
    pass
