"""Runtime configuration and component wiring."""
