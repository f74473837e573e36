from .tracker import DEFAULT_TOP_N, TopNTracker, format_entries

__all__ = ["DEFAULT_TOP_N", "TopNTracker", "format_entries"]
