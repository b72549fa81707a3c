"""Exception types raised by the vendor clients and absorbed by the core pipeline."""


class PlacePageError(RuntimeError):
    """Base class for failures raised while loading a place page."""


class GeolocationError(PlacePageError):
    """Raised when the geolocation API returns a non-successful response."""


class DeviceLocationError(PlacePageError):
    """Raised when the device location provider cannot produce a fix."""


class PlaceServiceError(PlacePageError):
    """Raised when the store API fails or returns an unusable payload."""
