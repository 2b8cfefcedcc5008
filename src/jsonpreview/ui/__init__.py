"""Qt adapters for the preview pipeline. Importing this package requires PySide6."""

from .qt_surface import PreviewWidgets, QtStatusIndicator, QtTextBuffer, create_preview_widgets, install_qt_log_bridge

__all__ = ["PreviewWidgets", "QtStatusIndicator", "QtTextBuffer", "create_preview_widgets", "install_qt_log_bridge"]
