"""
Matplotlib canvas widgets for location visualization.
"""
from ui.canvases.track_map import TrackMapCanvas
from ui.canvases.time_series import TimeSeriesCanvas

__all__ = ['TrackMapCanvas', 'TimeSeriesCanvas']
