"""Analysis utilities for alarmcam signal traces."""

from .signal_analysis import TraceSummary, load_trace, save_signal_plot, save_trace_csv, summarize_trace

__all__ = [
    "TraceSummary",
    "load_trace",
    "save_signal_plot",
    "save_trace_csv",
    "summarize_trace",
]
