"""Backend transport and session persistence."""
