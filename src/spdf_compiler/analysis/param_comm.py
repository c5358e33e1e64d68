from typing import Dict, Iterable, List, Optional, Set

from loguru import logger

from spdf_compiler.analysis.rates import GraphExpressions
from spdf_compiler.analysis.solutions import Solutions
from spdf_compiler.core.errors import ModifierError
from spdf_compiler.core.expression import divide
from spdf_compiler.core.types import ActorId, PortDir
from spdf_compiler.ir.graph import Actor, Channel, Graph


def period_func(parameter: str) -> str:
    return f"<{parameter}>"


class ParamComm:
    """
    Parameter communication: who sets each parameter, who uses it, and the
    edges that deliver it.

    Modifiers delegate the source role to "period actors", purely analytical
    nodes that fire once per modification period. Parameters that appear in
    rates without a modifier are environment parameters: unknown constants
    fixed for the whole run.
    """

    def __init__(self, graph: Graph):
        self.graph = graph
        self._period_actors: Dict[str, List[Actor]] = {}
        self._modifier_of_period: Dict[ActorId, Actor] = {}
        self._environment: Dict[str, None] = {}
        self._modified: Dict[ActorId, Set[str]] = {}
        self._used: Dict[ActorId, Set[str]] = {}
        self._users: Dict[str, Dict[ActorId, Actor]] = {}
        self._inserted = False
        self._connected = False

    # -- queries -----------------------------------------------------

    def get_period_actor(self, parameter: str) -> Optional[Actor]:
        actors = self._period_actors.get(parameter)
        if not actors:
            return None
        return actors[0]

    def get_modifier_of(self, period_actor: Actor) -> Actor:
        return self._modifier_of_period[period_actor.id]

    def is_period_actor(self, actor: Actor) -> bool:
        return actor.id in self._modifier_of_period

    def get_user_set(self, parameter: str) -> List[Actor]:
        """Users of `parameter`; a modifier that also uses its own parameter is included."""
        return list(self._users.get(parameter, {}).values())

    def get_used_parameter_set(self, actor: Actor) -> Set[str]:
        return set(self._used.get(actor.id, set()))

    def get_modified_parameter_set(self, actor: Actor) -> Set[str]:
        return set(self._modified.get(actor.id, set()))

    @property
    def modified_parameters(self) -> List[str]:
        return list(self._period_actors)

    @property
    def environment_parameters(self) -> List[str]:
        return list(self._environment)

    # -- analysis steps ----------------------------------------------

    def insert_period_actors(self) -> None:
        """Add one period actor per modifier instance, fed by the modifier at rate 1 and consuming `period`."""
        if self._inserted:
            raise RuntimeError("Period actors are already inserted")
        self._inserted = True

        for modifier in self.graph.modifiers:
            param = modifier.parameter
            out_port = self.graph.add_port(modifier.func, f"_{param}_out", PortDir.OUT, "1")
            pfunc = period_func(param)
            self.graph.add_port(pfunc, "in", PortDir.IN, modifier.period)

            instances = self.graph.actors_of(modifier.func) if self.graph.has_func(modifier.func) else []
            period_actors: List[Actor] = []
            for idx, modifier_actor in enumerate(instances):
                name = pfunc if len(instances) == 1 else f"{pfunc}#{idx}"
                period_actor = self.graph.add_actor(name, pfunc, auto=True)
                self.graph.add_channel(
                    (modifier_actor.name, out_port.name),
                    (period_actor.name, "in"),
                    name=f"{modifier_actor.name}to{period_actor.name}",
                    auto=True,
                )
                period_actors.append(period_actor)
                self._modifier_of_period[period_actor.id] = modifier_actor
            self._period_actors[param] = period_actors
            logger.debug("Inserted {count} period actor(s) for {modifier}", count=len(period_actors), modifier=str(modifier))

    def identify_parameter_sources(self, rates: GraphExpressions) -> None:
        self._establish_unique_period_actors()

        for port in self.graph.ports:
            rate = rates.get_rate(port)
            if rate is None:
                continue
            for param in sorted(rate.parameter_set()):
                if param not in self._period_actors:
                    self._environment.setdefault(param)
        if self._environment:
            logger.debug("Environment parameters: {params}", params=self.environment_parameters)

    def _establish_unique_period_actors(self) -> None:
        for param, period_actors in self._period_actors.items():
            func = self.graph.get_modifier(param).func
            if len(period_actors) != 1:
                instances = [self._modifier_of_period[a.id].name for a in period_actors]
                raise ModifierError(param, func, instances)
            modifier_actor = self._modifier_of_period[period_actors[0].id]
            self._modified.setdefault(modifier_actor.id, set()).add(param)

    def identify_parameter_users(self, rates: GraphExpressions, solutions: Solutions) -> None:
        # Ports of period actors count too: a period like 3*p makes the period actor a user of p.
        for actor in self.graph.actors:
            self._add_user(solutions.get_solution(actor).parameter_set(), actor)
            for link in actor.all_links():
                self._add_user(rates.require_rate(link.port).parameter_set(), actor)

    def _add_user(self, parameters: Iterable[str], actor: Actor) -> None:
        used = self._used.setdefault(actor.id, set())
        for param in sorted(parameters):
            used.add(param)
            self._users.setdefault(param, {})[actor.id] = actor

    def connect_sources_to_users(self, solutions: Solutions) -> List[Channel]:
        """
        Connect every period actor to the users of its parameter.

        Must run after a successful safety check: the rate of each new edge is
        solution(user) / solution(period actor), which is exact only in a safe graph.
        """
        if self._connected:
            raise RuntimeError("Parameter sources are already connected to users")
        self._connected = True

        created: List[Channel] = []
        for param, users in self._users.items():
            period_actor = self.get_period_actor(param)
            if period_actor is None:
                continue
            period_solution = solutions.get_solution(period_actor)
            idx = 0
            for user in users.values():
                if user is period_actor or param in self.get_modified_parameter_set(user):
                    continue
                ratio = divide(solutions.get_solution(user), period_solution)
                out_port = self.graph.add_port(period_actor.func, f"out{idx}", PortDir.OUT, str(ratio))
                idx += 1
                in_name = f"_{param}_in"
                if not self.graph.has_port(user.func, in_name):
                    self.graph.add_port(user.func, in_name, PortDir.IN, "1")
                created.append(
                    self.graph.add_channel(
                        (period_actor.name, out_port.name),
                        (user.name, in_name),
                        name=f"{period_actor.name}to{user.name}",
                        auto=True,
                    )
                )
        logger.debug("Connected parameter sources to users: {count} channels", count=len(created))
        return created
