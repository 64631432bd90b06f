"""Exception types shared across the gatekeeper."""


class StoreUnavailableError(Exception):
    """Counter store could not answer; the caller must not guess a decision."""


class InvalidPhoneNumberError(ValueError):
    """Phone number is not in a supported format."""
