"""Screen-level views hosted by ``AppShell``."""
