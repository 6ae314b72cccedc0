class NormalizeConfigError(Exception):
    """
    Base exception for invalid normalization configuration.
    """

    pass


class NormalizeOptionTypeError(NormalizeConfigError, TypeError):
    """
    Raised when an option has the wrong type (e.g. a non-integer max_depth).
    """

    pass


class NormalizeOptionRangeError(NormalizeConfigError, ValueError):
    """
    Raised when an option is outside its allowed range.
    """

    pass
