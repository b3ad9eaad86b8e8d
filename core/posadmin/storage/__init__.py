"""Local persistence: paths, settings, credentials and brand scope."""
