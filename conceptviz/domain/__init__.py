"""Domain layer: entities, value objects and service/repository contracts."""
