"""
StoriBloom - timed collaborative writing workshop orchestration.

Small groups move through a fixed sequence of stages (LOBBY through FINAL,
then CLOSED). This package holds the stage/time authority that drives them:
the stage engine tick loop, the room state machine, and the debounce and
deferred one-shot schedulers the engine cooperates with.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
