"""Theme colors and color utilities for the UI."""


class GameColors:
    """Warm amber palette with high contrast for large cards."""

    BG_TOP = "#fffbeb"
    BG_BOTTOM = "#fef3c7"

    PRIMARY = "#d97706"
    PRIMARY_DARK = "#b45309"
    TITLE = "#92400e"

    CARD_BACK = "#fbbf24"
    CARD_FACE = "#ffffff"
    CARD_MATCHED = "#dcfce7"
    CARD_BORDER = "#fcd34d"

    PANEL_BG = "#ffffff"
    HISTORY_ITEM_BG = "#fffbeb"

    TEXT_PRIMARY = "#78350f"
    TEXT_SECONDARY = "#b45309"
    TEXT_MUTED = "#f59e0b"


def blend_hex(a: str, b: str, t: float) -> str:
    """Blend two #RRGGBB colors. t=0 -> a, t=1 -> b."""
    a = a.strip()
    b = b.strip()
    if not (a.startswith("#") and b.startswith("#") and len(a) == 7 and len(b) == 7):
        return a
    try:
        ar, ag, ab = int(a[1:3], 16), int(a[3:5], 16), int(a[5:7], 16)
        br, bg, bb = int(b[1:3], 16), int(b[3:5], 16), int(b[5:7], 16)
    except ValueError:
        return a
    t = max(0.0, min(1.0, float(t)))
    r = int(ar + (br - ar) * t)
    g = int(ag + (bg - ag) * t)
    bl = int(ab + (bb - ab) * t)
    return f"#{r:02X}{g:02X}{bl:02X}"
