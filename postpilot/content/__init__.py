"""Post persistence and lifecycle rules."""
