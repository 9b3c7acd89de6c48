# engine/exceptions.py

class SerError(Exception):
    pass


class InvalidInputError(SerError):
    pass


class EmptyInputError(InvalidInputError):
    pass


class InsufficientDataError(SerError):
    pass


class UnsupportedVehicleClassError(SerError):
    pass


class SingularModelError(SerError):
    pass


class InvalidYearError(SerError):
    pass


class StoreError(SerError):
    pass


class StoreUnavailableError(StoreError):
    """Transient store failure; callers may retry."""
