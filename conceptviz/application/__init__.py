"""Application layer: pipeline logic and use cases."""
