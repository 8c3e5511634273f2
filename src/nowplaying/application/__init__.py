"""Application layer - services that implement the player's use cases."""
