"""Domain layer - entities, exceptions and ports. No third-party dependencies."""
