class CleanNamiError(Exception):
    """Base exception for the pricing and job-creation core."""

    pass


class ConfigurationError(CleanNamiError):
    """
    Required configuration is missing or invalid.
    Aborts the whole poll.
    """

    pass


class StoreError(CleanNamiError):
    """A row store could not read or write a table."""

    pass
