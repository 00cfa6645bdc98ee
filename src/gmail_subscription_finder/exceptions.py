"""Exceptions raised by the file-facing parts of the subscription finder."""


class SubscriptionFinderError(Exception):
    """Base exception for the subscription finder."""


class InputFileError(SubscriptionFinderError):
    """An input file is missing, is not JSON, or has the wrong shape."""

    def __init__(self, path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")
