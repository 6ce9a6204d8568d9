from census_reconciler.exceptions.base import BaseCensusError


class CensusClientError(BaseCensusError):
    pass


class TransportError(CensusClientError):
    """Raised when a request fails before a status code is known."""

    def __init__(self, message: str, method: str = "", path: str = "") -> None:
        self.method = method
        self.path = path
        super().__init__(f"{method} {path}: {message}" if method else message)


class AuthError(CensusClientError):
    """Raised when a credential is missing or rejected by the platform."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class APIError(CensusClientError):
    """The platform answered with a status code >= 400."""

    def __init__(
        self,
        status_code: int,
        message: str = "",
        status_text: str = "",
        method: str = "",
        path: str = "",
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.status_text = status_text
        self.method = method
        self.path = path
        super().__init__(str(self))

    def __str__(self) -> str:
        location = f" on {self.method} {self.path}" if self.method else ""
        if self.message:
            return f"Census API error (status {self.status_code}){location}: {self.message}"
        return f"Census API error (status {self.status_code}){location}"


class NotFoundError(APIError):
    pass
