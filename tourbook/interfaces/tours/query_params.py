"""
Query-string collection with a parameter-pollution guard.

A repeated parameter collapses to its last value, except for the
whitelisted filter fields which keep every value (and become an ``in``
filter downstream).
"""

from fastapi import Request

from tourbook.domain.tours.query import ParamValue

POLLUTION_WHITELIST = frozenset(
    {
        "duration",
        "ratingsQuantity",
        "ratingsAverage",
        "maxGroupSize",
        "difficulty",
        "price",
    }
)


def query_params(request: Request) -> dict[str, ParamValue]:
    params: dict[str, ParamValue] = {}
    for key in dict.fromkeys(request.query_params.keys()):
        values = request.query_params.getlist(key)
        if key in POLLUTION_WHITELIST and len(values) > 1:
            params[key] = values
        else:
            params[key] = values[-1]
    return params
