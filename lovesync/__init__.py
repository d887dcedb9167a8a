"""lovesync - keep loved tracks in sync across music services."""
