"""Run-level failures raised before or outside the per-row loop."""


class ExportError(RuntimeError):
    """Base class for failures that abort a whole export run."""


class VideoNotFoundError(ExportError):
    pass


class OutputDirectoryError(ExportError):
    pass


class ProcessStartError(ExportError):
    """Raised when the encoder process could not be spawned."""


class ProcessStateError(ExportError):
    """Raised when the shared process slot is not in the expected state."""
