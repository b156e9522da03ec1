# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Page Renderer — The instance manager single-page app.

The document is static: it carries no tenant data. The embedded script asks
the parent window for the encrypted context at runtime.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

TEMPLATES_DIR = Path(__file__).parent / "templates"
PAGE_TEMPLATE = "custom_page.html"


@lru_cache(maxsize=1)
def render_custom_page() -> str:
    """Return the full HTML document."""
    return (TEMPLATES_DIR / PAGE_TEMPLATE).read_text(encoding="utf-8")
