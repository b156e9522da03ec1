# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Instance lifecycle states as shown to the frontend.
"""

from __future__ import annotations

STARTING = "starting"
QR_CODE = "qr_code"
AUTHORIZED = "authorized"
NOT_AUTHORIZED = "notAuthorized"
BLOCKED = "blocked"
YELLOW_CARD = "yellowCard"

INSTANCE_STATES = (STARTING, QR_CODE, AUTHORIZED, NOT_AUTHORIZED, BLOCKED, YELLOW_CARD)

# Gateway connection states (Evolution API / Baileys) → instance states
_GATEWAY_STATE_MAP = {
    "open": AUTHORIZED,
    "close": NOT_AUTHORIZED,
    "closed": NOT_AUTHORIZED,
    "connecting": QR_CODE,
    "refused": BLOCKED,
}


def normalize_state(raw: object) -> str:
    """Map a gateway-reported state onto INSTANCE_STATES; unknown values become 'starting'."""
    if not isinstance(raw, str):
        return STARTING
    if raw in INSTANCE_STATES:
        return raw
    return _GATEWAY_STATE_MAP.get(raw.lower(), STARTING)
