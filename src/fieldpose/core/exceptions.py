"""Custom exceptions for fieldpose."""


class FieldPoseError(Exception):
    """Base exception for all fieldpose errors."""

    pass


class ReferenceMapError(FieldPoseError):
    """Reference map file or landmark record could not be interpreted."""

    def __init__(self, message: str = "Invalid reference map") -> None:
        self.message = message
        super().__init__(self.message)


class MotionSourceError(FieldPoseError):
    """An encoder, gyro or module reading could not be obtained."""

    def __init__(self, message: str = "Motion source read failed") -> None:
        self.message = message
        super().__init__(self.message)


class SampleFormatError(FieldPoseError):
    """A raw vision record does not have the expected layout."""

    def __init__(self, message: str = "Malformed vision sample") -> None:
        self.message = message
        super().__init__(self.message)


class EstimatorConfigError(FieldPoseError):
    """Estimator parameters are outside their valid range."""

    def __init__(self, message: str = "Invalid estimator configuration") -> None:
        self.message = message
        super().__init__(self.message)
