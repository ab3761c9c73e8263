"""Domain layer - paths, visibility, metadata and listing rules."""
