class TrainHogError(Exception):
    """Base class for errors that abort a training run."""


class DatasetWriteError(TrainHogError):
    pass


class DatasetFormatError(TrainHogError):
    """Malformed line in a features file. Never trained on."""

    def __init__(self, path, line_number, reason):
        self.path = str(path)
        self.line_number = line_number
        self.reason = reason
        if line_number is None:
            super().__init__(f"{self.path}: {reason}")
        else:
            super().__init__(f"{self.path}:{line_number}: {reason}")


class TrainingError(TrainHogError):
    pass


class KernelMismatchError(TrainHogError):
    pass


class DetectorFileError(TrainHogError):
    pass


class CameraError(TrainHogError):
    pass
