"""Typed failures raised by the place service and mapped to HTTP responses in app.main."""


class PlaceServiceError(Exception):
    code: str = "internal_error"
    status_code: int = 500
    default_message: str = "Something went wrong, please try again later."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PlaceServiceError):
    code = "invalid_input"
    status_code = 422
    default_message = "Invalid inputs passed, please check your data."


class GeocodingError(PlaceServiceError):
    code = "geocoding_failed"
    status_code = 422
    default_message = "Could not find location for the specified address."


class NotFoundError(PlaceServiceError):
    code = "not_found"
    status_code = 404
    default_message = "Could not find the requested resource."


class AuthorizationError(PlaceServiceError):
    code = "not_authorized"
    status_code = 403
    default_message = "You are not allowed to modify this place."


class TransactionError(PlaceServiceError):
    code = "transaction_failed"
    status_code = 500
    default_message = "Could not save changes, please try again."


class StorageError(PlaceServiceError):
    code = "storage_failed"
    status_code = 500
    default_message = "Something went wrong, could not load data."


class ImageUploadError(PlaceServiceError):
    code = "image_upload_failed"
    status_code = 500
    default_message = "Failed to upload image."


class SideEffectWarning(UserWarning):
    """A cleanup step failed after the main write was committed. Only ever logged."""
