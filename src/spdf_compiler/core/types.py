from enum import Enum
from typing import NewType

ActorId = NewType("ActorId", int)
PortId = NewType("PortId", int)
ChannelId = NewType("ChannelId", int)


class PortDir(Enum):
    OUT = "OUT"
    IN = "IN"

    @property
    def opposite(self) -> "PortDir":
        return PortDir.IN if self is PortDir.OUT else PortDir.OUT
