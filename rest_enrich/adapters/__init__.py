"""Request template construction and per-record materialisation."""

from .interpolation import InterpolationIndex, build_index, materialize, sprintf
from .request_template import BasicAuth, RequestTemplate, RuntimeRequest, normalize_request

__all__ = [
    "BasicAuth",
    "InterpolationIndex",
    "RequestTemplate",
    "RuntimeRequest",
    "build_index",
    "materialize",
    "normalize_request",
    "sprintf",
]
