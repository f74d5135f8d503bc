"""
Custom exceptions for the location engine
"""
from typing import Optional, Dict, Any

NOT_FOUND_MESSAGE = "Location not found. Please try a different search term or enter coordinates directly."


class LocatorException(Exception):
    """Base exception for the location engine"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(LocatorException):
    """Input that is empty or cannot be used"""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details or {})
        if field:
            self.details["field"] = field


class OutOfRangeCoordinateError(InvalidInputError):
    """Latitude or longitude outside valid bounds"""

    def __init__(self, lat: float, lng: float):
        super().__init__(f"Coordinate out of range: {lat},{lng}", details={"lat": lat, "lng": lng})
        self.lat = lat
        self.lng = lng


class ProviderError(LocatorException):
    """One provider attempt failed"""

    def __init__(self, provider: str, message: str, reason: str = "error", details: Optional[Dict[str, Any]] = None):
        super().__init__(f"{provider} error: {message}", details=details or {})
        self.provider = provider
        self.reason = reason


class ExhaustedProvidersError(LocatorException):
    """Every provider in the chain failed"""

    def __init__(self, kind: str, errors: Optional[list] = None):
        super().__init__(NOT_FOUND_MESSAGE, details={"kind": kind, "errors": errors or []})
        self.kind = kind
        self.errors = errors or []
