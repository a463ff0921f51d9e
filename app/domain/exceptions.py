"""Service-level exceptions carrying a result code such as ``"404-1"``.

The numeric prefix of the result code doubles as the HTTP status, so a
service can raise these directly and the API layer renders them into the
standard response envelope.
"""

from fastapi import HTTPException


class ServiceException(HTTPException):
    def __init__(self, result_code: str, msg: str) -> None:
        self.result_code = result_code
        self.msg = msg
        super().__init__(status_code=int(result_code.split("-", 1)[0]), detail=msg)

    def __str__(self) -> str:
        return f"{self.result_code} : {self.msg}"


class BadRequestException(ServiceException):
    def __init__(self, msg: str, result_code: str = "400-1") -> None:
        super().__init__(result_code, msg)


class UnauthorizedException(ServiceException):
    def __init__(self, msg: str = "Authentication required", result_code: str = "401-1") -> None:
        super().__init__(result_code, msg)


class ForbiddenException(ServiceException):
    def __init__(self, msg: str = "Permission denied", result_code: str = "403-1") -> None:
        super().__init__(result_code, msg)


class NotFoundException(ServiceException):
    def __init__(self, msg: str, result_code: str = "404-1") -> None:
        super().__init__(result_code, msg)


class ConflictException(ServiceException):
    def __init__(self, msg: str, result_code: str = "409-1") -> None:
        super().__init__(result_code, msg)
