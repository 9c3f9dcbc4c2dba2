"""
Route map canvas: GPS trail colored by speed.
"""
import numpy as np
import matplotlib
from matplotlib.backends.backend_qt5agg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.collections import LineCollection
from matplotlib.colors import Normalize
from matplotlib.figure import Figure

from ui.styles import ACCENT_RED, style_axes

# Degrees of padding around the trail
MAP_PADDING_DEG = 0.0005


class TrackMapCanvas(FigureCanvas):
    """
    Matplotlib canvas for the vehicle trail.

    Plots longitude/latitude segments colored by speed and marks the
    latest position.
    """

    def __init__(self, parent=None, width=4, height=4, dpi=100):
        self.fig = Figure(figsize=(width, height), dpi=dpi)
        self.ax = self.fig.add_subplot(111)
        super().__init__(self.fig)
        self.setParent(parent)

        style_axes(self.fig, self.ax, labelsize=7)

        self.ax.set_aspect("equal", adjustable="datalim")
        self.ax.set_title("Location Map", fontsize=10)
        self.ax.set_xlabel("Longitude [°]", fontsize=8)
        self.ax.set_ylabel("Latitude [°]", fontsize=8)
        self.ax.ticklabel_format(useOffset=False)

        self.line_collection = None
        self.colorbar = None
        self.marker, = self.ax.plot([], [], "o", color=ACCENT_RED, markersize=6)

        self.fig.tight_layout(pad=1.0)

    def plot_trail(self, lons: np.ndarray, lats: np.ndarray, speeds: np.ndarray):
        """
        Redraw the trail.

        Args:
            lons: Longitudes in degrees
            lats: Latitudes in degrees
            speeds: Speed at each point in km/h (for coloring)
        """
        if lons.size == 0:
            return

        self.marker.set_data([lons[-1]], [lats[-1]])

        if self.line_collection is not None:
            self.line_collection.remove()
            self.line_collection = None

        if lons.size >= 2:
            points = np.array([lons, lats]).T.reshape(-1, 1, 2)
            segments = np.concatenate([points[:-1], points[1:]], axis=1)

            norm = Normalize(vmin=float(np.min(speeds)), vmax=max(float(np.max(speeds)), 1.0))
            lc = LineCollection(segments, cmap=matplotlib.colormaps["Blues"], norm=norm, linewidth=2.5)
            lc.set_array(speeds[:-1])

            self.line_collection = lc
            self.ax.add_collection(lc)

            # Only create colorbar once
            if self.colorbar is None:
                self.colorbar = self.fig.colorbar(
                    lc, ax=self.ax, fraction=0.046, pad=0.04, label="Speed [km/h]"
                )
            else:
                self.colorbar.update_normal(lc)

        self.ax.set_xlim(lons.min() - MAP_PADDING_DEG, lons.max() + MAP_PADDING_DEG)
        self.ax.set_ylim(lats.min() - MAP_PADDING_DEG, lats.max() + MAP_PADDING_DEG)
        self.draw_idle()
