"""Console window, dialogs and system tray."""
