"""Custom exception hierarchy for the ECG synthesis engine."""


class ECGSystemError(Exception):
    """Base exception for all ECG synthesis errors."""


class ConfigurationError(ECGSystemError, ValueError):
    """Raised when a generation parameter is invalid.

    Always surfaced to the caller immediately; never retried internally.
    """

    def __init__(self, parameter: str, detail: str) -> None:
        self.parameter = parameter
        self.detail = detail
        super().__init__(f"Invalid configuration for '{parameter}': {detail}")


class NumericalInstability(RuntimeWarning):
    """Warning category for steps force-accepted at the minimum step size.

    Emitted through :func:`warnings.warn`; it never aborts generation.
    """
