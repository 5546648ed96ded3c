"""cliptime: clip-to-broadcast timestamp correlation for YouTube live chat."""

__version__ = "1.0.0"
