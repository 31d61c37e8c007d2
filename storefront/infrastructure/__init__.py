"""Infrastructure layer - configuration, logging and PostgreSQL persistence."""
