from enum import Enum


class ErrorKind(Enum):
    INVALID_INPUT = 400
    STORE_FAILURE = 500

    @property
    def status_code(self) -> int:
        return self.value


# Raised by route handlers; rendered as {"error": message} with the kind's status
class ApiError(Exception):
    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


INVALID_NUMBERS = "suhu, humidity and lux must be numbers"
INVALID_TIMESTAMP = "timestamp is not a valid date-time"
STORE_UNAVAILABLE = "database error, please retry later"
INVALID_LIMIT = "n must be an integer"
