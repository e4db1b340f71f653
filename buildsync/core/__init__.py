"""Build discovery, deduplication and poll-until-terminal engine."""
