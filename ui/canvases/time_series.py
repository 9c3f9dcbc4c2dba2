"""
Rolling time series canvas (speed history).
"""
import numpy as np
from matplotlib.backends.backend_qt5agg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure

from ui.styles import ACCENT_BLUE, style_axes


class TimeSeriesCanvas(FigureCanvas):
    """
    Single line plot with time on the X-axis. Keeps only the last
    `window_s` seconds visible.
    """

    def __init__(self, title: str, parent=None, width=4, height=1.5, dpi=100, window_s=120.0):
        self.fig = Figure(figsize=(width, height), dpi=dpi)
        self.ax = self.fig.add_subplot(111)
        super().__init__(self.fig)
        self.setParent(parent)

        style_axes(self.fig, self.ax)

        self.title = title
        self.window_s = window_s
        self.ax.set_title(title, fontsize=8)
        self.ax.set_xlabel("Time [s]", fontsize=7)

        self.line, = self.ax.plot([], [], linewidth=1.5, color=ACCENT_BLUE)

        self.fig.tight_layout(pad=0.5)

    def update_data(self, t: np.ndarray, y: np.ndarray):
        """
        Replace the plotted data and rescale.

        Args:
            t: Time array in seconds (X-axis)
            y: Values (Y-axis)
        """
        if t.size == 0 or y.size == 0:
            return

        visible = t >= t[-1] - self.window_s
        self.line.set_data(t[visible], y[visible])
        self.ax.relim()
        self.ax.autoscale_view()
        self.draw_idle()
