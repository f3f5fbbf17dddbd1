"""UI Theme Constants for the work-order tracker.

Centralises all colour, font, and sizing constants for the
CustomTkinter interface.  Hospital green header + light content area.

This file contains **zero logic**, only ``Final`` constants.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------

HEADER_BG: Final[str] = "#2E7D32"
HEADER_TEXT: Final[str] = "#ffffff"

CONTENT_BG: Final[str] = "#F5F5F5"
CONTENT_CARD_BG: Final[str] = "#FFFFFF"

ACCENT_PRIMARY: Final[str] = "#2E7D32"
ACCENT_HOVER: Final[str] = "#1B5E20"
TEXT_PRIMARY: Final[str] = "#212121"
TEXT_SECONDARY: Final[str] = "#757575"
TEXT_LIGHT: Final[str] = "#ffffff"

# Status chips
STATUS_COLORS: Final[dict[str, str]] = {
    "open": "#1976D2",
    "in_progress": "#F57C00",
    "pending": "#FBC02D",
    "resolved": "#388E3C",
    "closed": "#616161",
    "cancelled": "#D32F2F",
}
STATUS_UNKNOWN: Final[str] = "#9E9E9E"

# Input / form
INPUT_BG: Final[str] = "#ffffff"
INPUT_BORDER: Final[str] = "#BDBDBD"
ERROR_TEXT: Final[str] = "#D32F2F"
SUCCESS_TEXT: Final[str] = "#388E3C"
DANGER: Final[str] = "#D32F2F"
DANGER_HOVER: Final[str] = "#B71C1C"

# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------

FONT_FAMILY: Final[str] = "Segoe UI"
FONT_BRAND: Final[tuple[str, int, str]] = (FONT_FAMILY, 22, "bold")
FONT_HEADING: Final[tuple[str, int, str]] = (FONT_FAMILY, 18, "bold")
FONT_SUBTITLE: Final[tuple[str, int]] = (FONT_FAMILY, 12)
FONT_BODY: Final[tuple[str, int]] = (FONT_FAMILY, 13)
FONT_LABEL: Final[tuple[str, int, str]] = (FONT_FAMILY, 11, "bold")
FONT_SMALL: Final[tuple[str, int]] = (FONT_FAMILY, 11)
FONT_BUTTON: Final[tuple[str, int, str]] = (FONT_FAMILY, 13, "bold")

# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------

LOGIN_WINDOW_WIDTH: Final[int] = 480
LOGIN_WINDOW_HEIGHT: Final[int] = 560
MAIN_WINDOW_WIDTH: Final[int] = 1100
MAIN_WINDOW_HEIGHT: Final[int] = 720
CORNER_RADIUS: Final[int] = 8
INPUT_HEIGHT: Final[int] = 40
PADDING_SM: Final[int] = 8
PADDING_MD: Final[int] = 16
PADDING_LG: Final[int] = 24
