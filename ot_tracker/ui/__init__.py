"""CustomTkinter view layer."""
