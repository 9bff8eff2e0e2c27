class ValidationError(ValueError):
    """Raised when construct properties fail validation at declaration time."""

    pass


class ConstructIdConflictError(ValidationError):
    """Raised when a construct id is malformed or already used within its scope."""

    pass


class AppLoadError(RuntimeError):
    """Raised when the CLI cannot import or call an app entrypoint."""
