"""Cross-platform file search over Everything, Spotlight, ripgrep and locate."""

__version__ = "0.1.0"
