from enum import Enum, auto

# Lifecycle of the map screen - one-shot, there is no way back to UNLOADED
class ScreenState(Enum):
    UNLOADED = auto()
    LOADED = auto()
