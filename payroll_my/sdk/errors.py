"""Errors raised by the statutory engine.

All three are reported to the immediate caller. None of them is ever turned
into a zero deduction: a misreported statutory amount is a correctness defect,
so the whole calculation fails instead.
"""


class StatutoryError(ValueError):
    """Base class for statutory calculation errors."""
    pass


class ConfigurationError(StatutoryError):
    """Raised when a wage-band table, tax schedule or rate config is malformed.

    Detected when the table is loaded, never during a calculation.
    """
    pass


class InvalidProfileError(StatutoryError):
    """Raised when a tax profile is structurally inconsistent."""
    pass


class InvalidInputError(StatutoryError):
    """Raised for negative amounts or a month outside 1-12."""
    pass
