"""
Errors raised by the detection scheduler.
"""


class SlidewatchError(Exception):
    pass


class ConfigurationError(SlidewatchError):
    """Detection config, metric, dataset or detector cannot be resolved."""


class DetectorDataInsufficientError(SlidewatchError):
    """Raised by a detector that lacks the data to analyse a window."""


class DetectionPipelineError(SlidewatchError):
    """A run produced nothing usable. ``cause`` is the last window error."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class DetectionAborted(DetectionPipelineError):
    pass


class DetectionFailed(DetectionPipelineError):
    pass
