class WeighInError(Exception):
    """Base class for errors raised by the weigh-in core."""


class EntryValidationError(WeighInError):
    """A daily entry was rejected; the message is shown to the member."""


class PenaltyLockedError(WeighInError):
    """Penalty status was changed before the challenge finished."""


class StoreCorruptedError(WeighInError):
    """The persisted document exists but cannot be parsed."""
