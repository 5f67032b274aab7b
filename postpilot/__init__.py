"""PostPilot core: configuration, logging, persistence and post lifecycle."""
