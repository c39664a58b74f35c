"""
Fatal pipeline errors.

Anything raised from here aborts the run: these are failures that change the
shape of the whole dataset (schema, CRS, unreachable sources), as opposed to
per-record problems which are carried as missing values and filtered later.
"""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class FetchError(PipelineError):
    """Raised when a source dataset cannot be downloaded."""

    error_code = "FETCH_ERROR"


class SchemaError(PipelineError):
    """Raised when a spreadsheet does not match its known column layout."""

    error_code = "SCHEMA_ERROR"


class CrsMismatchError(PipelineError):
    """Raised when points and ward polygons are not in the same CRS."""

    error_code = "CRS_MISMATCH"


class GeocoderUnavailableError(PipelineError):
    """Raised when the geocoding service looks to be down entirely."""

    error_code = "GEOCODER_UNAVAILABLE"
