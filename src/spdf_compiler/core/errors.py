from typing import TYPE_CHECKING, Any, List, Optional

if TYPE_CHECKING:
    from spdf_compiler.analysis.inconsistency import InconsistencyProof
    from spdf_compiler.analysis.liveness import DirectedCycle
    from spdf_compiler.analysis.safety import SafetyViolation


class SpdfError(Exception):
    """Base class for all errors raised by the analysis core."""


class ArithmeticInconsistencyError(SpdfError, ArithmeticError):
    """Raised when an exact division leaves a negative power or a fraction cannot collapse."""


class ExpressionSyntaxError(SpdfError, ValueError):
    def __init__(self, text: str, token: str, reason: str):
        super().__init__(f"Cannot parse rate expression '{text}': token '{token}' {reason}")
        self.text = text
        self.token = token


class GraphStructureError(SpdfError, ValueError):
    """Raised on misuse of the graph API (duplicates, unknown entities, wrong directions)."""


class MissingRateError(GraphStructureError):
    def __init__(self, port: Any):
        super().__init__(f"Port {port} is connected but has no rate")
        self.port = port


class GraphDisconnectedError(SpdfError):
    def __init__(self, actor_count: int, reached_count: int):
        super().__init__(
            f"The graph is not completely connected: reached {reached_count} of {actor_count} actors"
        )
        self.actor_count = actor_count
        self.reached_count = reached_count


class ModifierError(SpdfError):
    def __init__(self, parameter: str, func: str, instances: List[str]):
        if not instances:
            msg = f"No actor of type \"{func}\", which should provide parameter {parameter}, is found in the graph"
        else:
            msg = f"Multiple actors of type \"{func}\" modify parameter {parameter}: {instances}. Ambiguous!"
        super().__init__(msg)
        self.parameter = parameter
        self.func = func
        self.instances = instances


class RateInconsistencyError(SpdfError):
    def __init__(self, proof: "InconsistencyProof"):
        super().__init__(proof.diagnostics())
        self.proof = proof


class SafetyViolationError(SpdfError):
    def __init__(self, violation: "SafetyViolation"):
        super().__init__(violation.diagnostics())
        self.violation = violation

    @property
    def parameter(self) -> str:
        return self.violation.parameter


class LivenessViolationError(SpdfError):
    def __init__(self, cycle: "DirectedCycle", message: Optional[str] = None):
        super().__init__(message or cycle.diagnostics())
        self.cycle = cycle
