from fastapi import HTTPException


class ApiError(HTTPException):
    status_code = 500
    default_message = "Unexpected server error."

    def __init__(self, message: str = "", status_code: int = 0):
        super().__init__(status_code=status_code or self.status_code, detail=message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.detail)


class MethodNotAllowed(ApiError):
    status_code = 405
    default_message = "Method not allowed."


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Missing auth token."


class Unauthorized(ApiError):
    status_code = 403
    default_message = "Not authorized."


class ValidationFailed(ApiError):
    status_code = 400
    default_message = "Invalid request."


class UpstreamRejected(ApiError):
    # Status comes from classify_rpc_error; the message is the gateway's, verbatim.
    status_code = 400
    default_message = "Request failed."


class UpstreamUnavailable(ApiError):
    status_code = 500
    default_message = "Upstream service unavailable."
