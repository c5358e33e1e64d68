from dataclasses import dataclass

from loguru import logger

from spdf_compiler.analysis.param_comm import ParamComm
from spdf_compiler.analysis.solutions import Solutions
from spdf_compiler.core.errors import SafetyViolationError
from spdf_compiler.core.expression import Expression, divides
from spdf_compiler.core.result import Result
from spdf_compiler.ir.graph import Actor


@dataclass
class SafetyViolation:
    parameter: str
    user: Actor
    user_solution: Expression
    period_solution: Expression

    def diagnostics(self) -> str:
        return (
            f"Safety violation: parameter \"{self.parameter}\" user {self.user.name}"
            f" solution {self.user_solution} is not a multiple of the period actor solution {self.period_solution}"
        )

    def to_error(self) -> SafetyViolationError:
        return SafetyViolationError(self)


class Safety:
    """
    Safety criterion for parameter modification: every user of a parameter
    fires a whole number of times per firing of the parameter's period actor,
    so the value stays constant over each user's firing window.
    """

    def check(self, param_comm: ParamComm, solutions: Solutions) -> Result[None, SafetyViolation]:
        for parameter in sorted(param_comm.modified_parameters):
            period_actor = param_comm.get_period_actor(parameter)
            period_solution = solutions.get_solution(period_actor)
            for user in param_comm.get_user_set(parameter):
                user_solution = solutions.get_solution(user)
                if not divides(period_solution, user_solution):
                    violation = SafetyViolation(parameter, user, user_solution, period_solution)
                    logger.warning("{diag}", diag=violation.diagnostics())
                    return Result.failure(violation)
        logger.debug("Parameter modification is safe for {params}", params=sorted(param_comm.modified_parameters))
        return Result.success()
