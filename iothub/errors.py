class IoTHubError(Exception):
    """Base exception for iothub operations"""

    pass


class NotFoundError(IoTHubError):
    def __init__(self, path: str, what: str = "file"):
        super().__init__(f"iothub: {what} does not exist: {path}")
        self.path = path


class DecodeError(IoTHubError):
    def __init__(self, message: str = "failed to decode PEM certificate"):
        super().__init__(f"iothub: {message}")


class ParseError(IoTHubError):
    def __init__(self, message: str = "failed to parse certificate"):
        super().__init__(f"iothub: {message}")


class ConfigError(IoTHubError):
    def __init__(self, message: str):
        super().__init__(f"iothub: {message}")
