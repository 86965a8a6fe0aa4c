"""
Error types raised by the geoviz pipeline.

File-level errors (UnsupportedFileType, MalformedFile, MissingLocationInfo)
abort an upload and are shown to the user. NoValidData is attached to an
empty PipelineResult instead of being raised. GeocodeLookupFailed never
leaves the geocoding module; it only marks a single row as unresolved.
"""


class GeoVizError(Exception):
    """Base class for errors that carry a user-facing message."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "error_type": type(self).__name__}


class UnsupportedFileType(GeoVizError):
    status_code = 415


class MalformedFile(GeoVizError):
    status_code = 422


class MissingLocationInfo(GeoVizError):
    status_code = 422


class NoValidData(GeoVizError):
    status_code = 200


class GeocodeLookupFailed(GeoVizError):
    status_code = 502


class UnsupportedChartType(GeoVizError):
    pass


class SessionNotFound(GeoVizError):
    status_code = 404
