# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Response Encoding — JSON-safe output for the browser.

JavaScript numbers lose precision beyond 2^53 - 1, so integers outside that
range (e.g. BIGINT primary keys) are emitted as strings. Non-finite floats
become null, as JSON.stringify does.
"""

from __future__ import annotations

import math
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

MAX_SAFE_INTEGER = 2**53 - 1


def encode_response(value: Any) -> Any:
    """Recursively stringify integers a JavaScript client cannot represent exactly."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value) if abs(value) > MAX_SAFE_INTEGER else value
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: encode_response(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_response(v) for v in value]
    return value


class EncodedJSONResponse(JSONResponse):
    """JSONResponse that applies encode_response before serialization."""

    def render(self, content: Any) -> bytes:
        return super().render(encode_response(jsonable_encoder(content)))
