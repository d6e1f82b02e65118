"""Background engines: repository sync and analytics."""
