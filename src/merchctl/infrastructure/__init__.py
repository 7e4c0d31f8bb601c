"""Infrastructure layer — persistence gateway, database, and store wiring."""
