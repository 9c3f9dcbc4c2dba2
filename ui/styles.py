"""
Styling constants and theme configuration for the tracker UI.
"""

# =============================================================================
# Color Palette
# =============================================================================

BG_COLOR = "#111111"          # Main background
BG_COLOR_LIGHT = "#181818"    # Lighter background (axes, panels)
TEXT_COLOR = "#EEEEEE"        # Main text
TEXT_COLOR_DIM = "#CCCCCC"    # Dimmed text (axis labels, etc.)
TEXT_COLOR_DARK = "#888888"   # Dark text (timestamps)
BORDER_COLOR = "#555555"      # Borders
GRID_COLOR = "#333333"        # Grid lines

ACCENT_BLUE = "#6FA8FF"       # Speed line, buttons
ACCENT_RED = "#FF6B6B"        # Disconnected, stop
ACCENT_GREEN = "#6BCB77"      # Connected

# =============================================================================
# Matplotlib helpers
# =============================================================================


def style_axes(fig, ax, labelsize=7):
    """Apply the dark theme to a figure and its single axes."""
    fig.patch.set_facecolor(BG_COLOR)
    ax.set_facecolor(BG_COLOR_LIGHT)

    for spine in ax.spines.values():
        spine.set_color(TEXT_COLOR_DIM)
    ax.tick_params(colors=TEXT_COLOR_DIM, labelsize=labelsize)
    ax.xaxis.label.set_color(TEXT_COLOR_DIM)
    ax.yaxis.label.set_color(TEXT_COLOR_DIM)
    ax.title.set_color("#FFFFFF")
    ax.grid(True, color=GRID_COLOR, alpha=0.6)

# =============================================================================
# PyQt5 Stylesheet
# =============================================================================

DARK_STYLESHEET = f"""
    QMainWindow {{
        background-color: {BG_COLOR};
        color: {TEXT_COLOR};
    }}
    QGroupBox {{
        border: 1px solid {BORDER_COLOR};
        border-radius: 4px;
        margin-top: 8px;
        padding-top: 10px;
        font-weight: bold;
        color: {TEXT_COLOR};
    }}
    QGroupBox::title {{
        subcontrol-origin: margin;
        left: 8px;
        padding: 0 4px 0 4px;
    }}
    QLabel {{
        color: {TEXT_COLOR};
        font-size: 10pt;
    }}
    QTextEdit {{
        background-color: {BG_COLOR_LIGHT};
        color: {TEXT_COLOR};
        border: 1px solid {BORDER_COLOR};
        border-radius: 4px;
        padding: 4px;
        font-family: monospace;
    }}
    QPushButton {{
        background-color: {ACCENT_BLUE};
        color: #FFFFFF;
        border: none;
        border-radius: 4px;
        padding: 6px 12px;
        font-weight: bold;
    }}
    QPushButton:hover {{
        background-color: #5A98EF;
    }}
    QPushButton:pressed {{
        background-color: #4A88DF;
    }}
    QPushButton:disabled {{
        background-color: {BORDER_COLOR};
    }}
"""
