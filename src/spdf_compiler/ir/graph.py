from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from spdf_compiler.core.errors import GraphStructureError
from spdf_compiler.core.types import ActorId, ChannelId, PortDir, PortId

PortRef = Tuple[str, str]  # (actor name, port name)


@dataclass(eq=False)
class Port:
    """Port of an actor type; shared by every instance of `func`."""

    id: PortId
    func: str
    name: str
    direction: PortDir
    rate: Optional[str] = None

    def set_rate(self, text: str) -> None:
        if self.rate is not None:
            raise GraphStructureError(f"Attempt to set rate for port {self} again")
        self.rate = text

    def __str__(self) -> str:
        return f"{self.name}@{self.func}@Port({self.direction.value})"


@dataclass(eq=False)
class Link:
    channel: "Channel"
    actor: "Actor"
    port: Port

    @property
    def opposite(self) -> "Link":
        return self.channel.link(self.port.direction.opposite)

    def __str__(self) -> str:
        return f"{self.actor.name}.{self.port.name}"


@dataclass(eq=False)
class Actor:
    id: ActorId
    name: str
    func: str
    exec_time: int = 0
    auto: bool = False
    links_in: List[Link] = field(default_factory=list)
    links_out: List[Link] = field(default_factory=list)

    def links(self, direction: PortDir) -> List[Link]:
        return list(self.links_in if direction is PortDir.IN else self.links_out)

    def all_links(self) -> List[Link]:
        return self.links_in + self.links_out

    def channels(self) -> List["Channel"]:
        seen: Dict[ChannelId, Channel] = {}
        for link in self.all_links():
            seen.setdefault(link.channel.id, link.channel)
        return list(seen.values())

    def __str__(self) -> str:
        return f"{self.name}@{self.func}@Actor"


@dataclass(eq=False)
class Channel:
    id: ChannelId
    name: Optional[str] = None
    initial_tokens: int = 0
    token_size: int = 0
    auto: bool = False
    src: Optional[Link] = None
    dst: Optional[Link] = None

    def link(self, direction: PortDir) -> Link:
        link = self.src if direction is PortDir.OUT else self.dst
        if link is None:
            raise GraphStructureError(f"Channel {self.id} is not bound")
        return link

    @property
    def is_bound(self) -> bool:
        return self.src is not None and self.dst is not None

    def opposite(self, actor: Actor) -> Actor:
        for direction in (PortDir.OUT, PortDir.IN):
            link = self.link(direction)
            if link.actor is actor:
                return link.opposite.actor
        raise GraphStructureError(f"{actor} is not bound to {self}")

    def __str__(self) -> str:
        return f"{self.src} --> {self.dst}"


@dataclass(frozen=True)
class Modifier:
    """Actor type `func` sets run-time parameter `parameter` once every `period` firings."""

    func: str
    parameter: str
    value_kind: str
    period: str

    def __str__(self) -> str:
        return f"(set {self.parameter}:{self.value_kind}[{self.period}])@{self.func}"


class Graph:
    """
    SPDF application graph.

    Entities live in insertion-ordered arenas and are referred to by integer
    handles that survive `clone()`, so analysis caches keyed by handles stay
    comparable across copies of the same graph.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name
        self._actors: Dict[ActorId, Actor] = {}
        self._ports: Dict[PortId, Port] = {}
        self._channels: Dict[ChannelId, Channel] = {}
        self._modifiers: Dict[str, Modifier] = {}
        self._actor_by_name: Dict[str, ActorId] = {}
        self._port_by_key: Dict[Tuple[str, str], PortId] = {}
        self._instances: Dict[str, List[ActorId]] = {}
        self._next_id = 0

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id - 1

    # -- actors ------------------------------------------------------

    def add_actor(self, name: str, func: str, exec_time: int = 0, auto: bool = False) -> Actor:
        if name in self._actor_by_name:
            raise GraphStructureError(f"Actor with name {name} added twice")
        actor = Actor(ActorId(self._new_id()), name, func, exec_time=exec_time, auto=auto)
        self._actors[actor.id] = actor
        self._actor_by_name[name] = actor.id
        self._instances.setdefault(func, []).append(actor.id)
        return actor

    def has_actor(self, name: str) -> bool:
        return name in self._actor_by_name

    def get_actor(self, name: str) -> Actor:
        if name not in self._actor_by_name:
            raise GraphStructureError(f"Actor with name {name} not found")
        return self._actors[self._actor_by_name[name]]

    def actor(self, actor_id: ActorId) -> Actor:
        return self._actors[actor_id]

    @property
    def actors(self) -> List[Actor]:
        return list(self._actors.values())

    def actors_of(self, func: str) -> List[Actor]:
        if func not in self._instances:
            raise GraphStructureError(f"Function (actor type) \"{func}\" not found")
        return [self._actors[a] for a in self._instances[func]]

    def has_func(self, func: str) -> bool:
        return bool(self._instances.get(func))

    def count_actors(self) -> int:
        return len(self._actors)

    def remove_actor(self, actor: Actor) -> None:
        for channel in actor.channels():
            self.remove_channel(channel)
        self._instances[actor.func].remove(actor.id)
        del self._actor_by_name[actor.name]
        del self._actors[actor.id]

    # -- ports -------------------------------------------------------

    def add_port(self, func: str, name: str, direction: PortDir, rate: Optional[str] = None) -> Port:
        key = (func, name)
        if key in self._port_by_key:
            raise GraphStructureError(f"Port {name}@{func} added twice")
        port = Port(PortId(self._new_id()), func, name, direction, rate)
        self._ports[port.id] = port
        self._port_by_key[key] = port.id
        return port

    def has_port(self, func: str, name: str) -> bool:
        return (func, name) in self._port_by_key

    def get_port(self, func: str, name: str) -> Port:
        key = (func, name)
        if key not in self._port_by_key:
            raise GraphStructureError(f"Port {name}@{func} not found")
        return self._ports[self._port_by_key[key]]

    def port(self, port_id: PortId) -> Port:
        return self._ports[port_id]

    @property
    def ports(self) -> List[Port]:
        return list(self._ports.values())

    # -- channels ----------------------------------------------------

    def add_channel(
        self,
        src: PortRef,
        dst: PortRef,
        initial_tokens: int = 0,
        token_size: int = 0,
        name: Optional[str] = None,
        auto: bool = False,
    ) -> Channel:
        if initial_tokens < 0:
            raise GraphStructureError(f"Negative initial tokens {initial_tokens} on {src} -> {dst}")
        channel = Channel(
            ChannelId(self._new_id()),
            name=name,
            initial_tokens=initial_tokens,
            token_size=token_size,
            auto=auto,
        )
        src_link = self._make_link(channel, src, PortDir.OUT)
        dst_link = self._make_link(channel, dst, PortDir.IN)
        channel.src = src_link
        channel.dst = dst_link
        src_link.actor.links_out.append(src_link)
        dst_link.actor.links_in.append(dst_link)
        self._channels[channel.id] = channel
        return channel

    def _make_link(self, channel: Channel, ref: PortRef, direction: PortDir) -> Link:
        actor_name, port_name = ref
        actor = self.get_actor(actor_name)
        port = self.get_port(actor.func, port_name)
        if port.direction is not direction:
            raise GraphStructureError(
                f"{direction.value} actor {actor_name} port={port_name}: wrong direction"
            )
        return Link(channel, actor, port)

    def remove_channel(self, channel: Channel) -> None:
        if channel.is_bound:
            channel.src.actor.links_out.remove(channel.src)
            channel.dst.actor.links_in.remove(channel.dst)
            channel.src = None
            channel.dst = None
        self._channels.pop(channel.id, None)

    def channel(self, channel_id: ChannelId) -> Channel:
        return self._channels[channel_id]

    @property
    def channels(self) -> List[Channel]:
        return list(self._channels.values())

    def get_channel(self, name: str) -> Optional[Channel]:
        for channel in self._channels.values():
            if channel.name == name:
                return channel
        return None

    def channels_between(self, src: Actor, dst: Actor) -> List[Channel]:
        return [c for c in self._channels.values() if c.src.actor is src and c.dst.actor is dst]

    def count_channels(self) -> int:
        return len(self._channels)

    def insert_channel_between(
        self,
        src: Actor,
        dst: Actor,
        src_rate: str,
        dst_rate: str,
        initial_tokens: int = 0,
        token_size: int = 0,
    ) -> Channel:
        """Connect two actors through fresh `p_<n>` ports (existing ports of that name are reused)."""
        src_port = f"p_{len(src.channels())}"
        dst_port = f"p_{len(dst.channels())}"
        if not self.has_port(src.func, src_port):
            self.add_port(src.func, src_port, PortDir.OUT, src_rate)
        if not self.has_port(dst.func, dst_port):
            self.add_port(dst.func, dst_port, PortDir.IN, dst_rate)
        return self.add_channel(
            (src.name, src_port),
            (dst.name, dst_port),
            initial_tokens=initial_tokens,
            token_size=token_size,
            name=f"{src.name}to{dst.name}",
        )

    # -- modifiers ---------------------------------------------------

    def add_modifier(self, func: str, parameter: str, value_kind: str, period: str) -> Modifier:
        if parameter in self._modifiers:
            raise GraphStructureError(f"Parameter {parameter} already has modifier {self._modifiers[parameter]}")
        modifier = Modifier(func, parameter, value_kind, period)
        self._modifiers[parameter] = modifier
        return modifier

    def get_modifier(self, parameter: str) -> Modifier:
        if parameter not in self._modifiers:
            raise GraphStructureError(f"No modifier for parameter {parameter}")
        return self._modifiers[parameter]

    @property
    def modifiers(self) -> List[Modifier]:
        return list(self._modifiers.values())

    # -- copies and dumps --------------------------------------------

    def clone(self) -> "Graph":
        copy = Graph(self.name)
        for port in self._ports.values():
            clone_port = Port(port.id, port.func, port.name, port.direction, port.rate)
            copy._ports[port.id] = clone_port
            copy._port_by_key[(port.func, port.name)] = port.id
        for actor in self._actors.values():
            clone_actor = Actor(actor.id, actor.name, actor.func, actor.exec_time, actor.auto)
            copy._actors[actor.id] = clone_actor
            copy._actor_by_name[actor.name] = actor.id
            copy._instances.setdefault(actor.func, []).append(actor.id)
        for channel in self._channels.values():
            clone_channel = Channel(
                channel.id, channel.name, channel.initial_tokens, channel.token_size, channel.auto
            )
            clone_channel.src = Link(clone_channel, copy._actors[channel.src.actor.id], copy._ports[channel.src.port.id])
            clone_channel.dst = Link(clone_channel, copy._actors[channel.dst.actor.id], copy._ports[channel.dst.port.id])
            clone_channel.src.actor.links_out.append(clone_channel.src)
            clone_channel.dst.actor.links_in.append(clone_channel.dst)
            copy._channels[channel.id] = clone_channel
        copy._modifiers = dict(self._modifiers)
        copy._next_id = self._next_id
        return copy

    def dump(self) -> str:
        lines = [f"Graph {self.name or '<unnamed>'}: {self.count_actors()} actors, {self.count_channels()} channels"]
        for actor in self._actors.values():
            flag = " (auto)" if actor.auto else ""
            lines.append(f"  actor {actor.name}@{actor.func}{flag}")
        for channel in self._channels.values():
            lines.append(
                f"  channel {channel} rates [{channel.src.port.rate}] -> [{channel.dst.port.rate}]"
                f" tokens={channel.initial_tokens}"
            )
        for modifier in self._modifiers.values():
            lines.append(f"  modifier {modifier}")
        return "\n".join(lines)

    def __iter__(self) -> Iterator[Actor]:
        return iter(list(self._actors.values()))
