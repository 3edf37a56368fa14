"""
Plan execution.

Runs a TcCommandPlan one command at a time, checking each result before
issuing the next command.
"""

import logging

from .composer import TcCommandPlan
from .exceptions import PlanAbortedError
from .runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

# What tc prints when a delete finds nothing installed
NOTHING_TO_DELETE = (
    "No such file or directory",
    "Cannot delete qdisc with handle of zero",
    "Invalid handle",
    "Cannot find specified qdisc",
)


def nothing_to_delete(result: CommandResult) -> bool:
    """True if a failed delete only reports that there was nothing to remove."""
    return any(marker in result.stderr for marker in NOTHING_TO_DELETE)


def execute_plan(runner: CommandRunner, plan: TcCommandPlan) -> list[CommandResult]:
    """
    Execute every command of ``plan`` in order with elevated privileges.

    A best-effort command (the preparatory deletes) that fails only
    because nothing was installed is logged and skipped. Any other
    failure stops the plan: the commands already run stay applied and the
    error reports how far it got.

    Args:
        runner: Where to run the commands.
        plan: Plan from build_apply_plan() or build_clear_plan().

    Returns:
        One CommandResult per command.

    Raises:
        PlanAbortedError: If a command exits nonzero for any reason other
            than a delete finding nothing to remove.
        TransportError: If the runner could not run a command at all.
    """
    results: list[CommandResult] = []

    for cmd in plan:
        result = runner.run(cmd.argv, privileged=True)
        results.append(result)

        if result.ok:
            continue
        if cmd.best_effort and nothing_to_delete(result):
            logger.warning(f"Ignoring failure of '{cmd}': {result.stderr.strip()}")
            continue

        logger.error(
            f"Aborting {plan.topology.value} plan on {plan.interface} after "
            f"{len(results) - 1} of {len(plan)} commands: {result.stderr.strip()}"
        )
        raise PlanAbortedError(plan, results, result)

    return results
