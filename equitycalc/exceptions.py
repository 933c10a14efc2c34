"""Custom exceptions for equitycalc."""


class EquityCalcError(Exception):
    """Base exception for equity calculation errors."""


class DataValidationError(EquityCalcError):
    """Raised when input data fails validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error on '{field}': {message}")


class TableLookupError(EquityCalcError):
    """Raised when a tax table has no data to fall back on."""

    def __init__(self, table: str, message: str):
        self.table = table
        super().__init__(f"Table lookup error for {table}: {message}")
