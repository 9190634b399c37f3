"""Domain layer: stage model, room snapshot, errors, and the stage machine."""
