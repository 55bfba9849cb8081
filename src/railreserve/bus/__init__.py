from .activity_log import ActivityLogBus
from .factory import build_transport_bus_from_env
from .fanout import FanoutBus
from .in_memory import InMemoryBus
from .kafka import KafkaBus

__all__ = ["ActivityLogBus", "InMemoryBus", "KafkaBus", "FanoutBus", "build_transport_bus_from_env"]
