"""Runner - executes scenarios and persists their checks.

Client-role runs (``run_client_scenario``) serve a scenario endpoint and
launch the client under test as ``<command> <server_url>``. Server-role runs
(``run_server_scenario``) point a probe at an existing server.
"""

import asyncio
import json
import shlex
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import structlog

from .config import HarnessConfig
from .scenarios.registry import ScenarioRegistry
from .shared.logging import run_context
from .types import Check, CheckStatus, format_timestamp, utc_now

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RunResult:
    """Checks produced by one scenario run."""

    role: str
    scenario: str
    checks: list[Check]
    result_dir: Optional[Path] = None
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None

    @property
    def passed(self) -> int:
        return sum(1 for c in self.checks if c.status is CheckStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return sum(1 for c in self.checks if c.status is CheckStatus.FAILURE)

    @property
    def denominator(self) -> int:
        """Checks that count towards the pass rate (SUCCESS or FAILURE)."""
        return self.passed + self.failed


@dataclass(frozen=True)
class RunSummary:
    """Aggregate of several scenario runs."""

    results: list[RunResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(r.passed for r in self.results)

    @property
    def failed(self) -> int:
        return sum(r.failed for r in self.results)

    @property
    def denominator(self) -> int:
        return sum(r.denominator for r in self.results)

    @property
    def success(self) -> bool:
        """Whether no check failed."""
        return self.failed == 0


def result_dir_name(role: str, scenario: str, when: Optional[datetime] = None) -> str:
    """Directory name for one run: ``<role>-<scenario>-<timestamp>``."""
    timestamp = format_timestamp(when or utc_now()).replace(":", "-").replace(".", "-")
    return f"{role}-{scenario}-{timestamp}"


def write_results(
    results_dir: str | Path,
    role: str,
    scenario: str,
    checks: list[Check],
    stdout: Optional[str] = None,
    stderr: Optional[str] = None,
) -> Path:
    """Write checks.json (and client output when given) to a fresh result directory.

    Returns:
        The created result directory
    """
    result_dir = Path(results_dir) / result_dir_name(role, scenario)
    result_dir.mkdir(parents=True, exist_ok=True)

    (result_dir / "checks.json").write_text(json.dumps([c.to_dict() for c in checks], indent=2))
    if stdout is not None:
        (result_dir / "stdout.txt").write_text(stdout)
    if stderr is not None:
        (result_dir / "stderr.txt").write_text(stderr)
    return result_dir


async def run_client_process(command: str, server_url: str, timeout: float) -> tuple[str, str, Optional[int]]:
    """Run the client under test against ``server_url``.

    The process is killed when it outlives ``timeout``.

    Returns:
        (stdout, stderr, exit code); exit code is None after a timeout kill
    """
    args = shlex.split(command) + [server_url]
    logger.info("Launching client", command=args)
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
        exit_code: Optional[int] = process.returncode
    except asyncio.TimeoutError:
        logger.warning("Client timed out", timeout=timeout)
        process.kill()
        stdout, stderr = await process.communicate()
        stderr += f"\nClient timed out after {timeout}s".encode()
        exit_code = None

    return stdout.decode(errors="replace"), stderr.decode(errors="replace"), exit_code


async def run_client_scenario(
    command: str,
    scenario_name: str,
    registry: ScenarioRegistry,
    config: Optional[HarnessConfig] = None,
    save: bool = True,
) -> RunResult:
    """Serve ``scenario_name`` and run the client under test against it.

    Raises:
        KeyError: Unknown scenario
        TransportFault: The scenario could not start
        OSError: The client command could not be launched
    """
    config = config or HarnessConfig()
    scenario = registry.create_scenario(scenario_name)

    with run_context("client", scenario_name):
        urls = await scenario.start()
        try:
            stdout, stderr, exit_code = await run_client_process(command, urls.server_url, config.timeout)
        finally:
            await scenario.stop()

    checks = scenario.get_checks()
    result_dir = (
        write_results(config.results_dir, "client", scenario_name, checks, stdout=stdout, stderr=stderr)
        if save
        else None
    )
    return RunResult(
        role="client",
        scenario=scenario_name,
        checks=checks,
        result_dir=result_dir,
        stdout=stdout,
        stderr=stderr,
        exit_code=exit_code,
    )


async def run_server_scenario(
    server_url: str,
    scenario_name: str,
    registry: ScenarioRegistry,
    config: Optional[HarnessConfig] = None,
    save: bool = True,
) -> RunResult:
    """Run the probe ``scenario_name`` against ``server_url``.

    Raises:
        KeyError: Unknown probe
    """
    config = config or HarnessConfig()
    probe = registry.create_probe(
        scenario_name,
        quiescence_window=config.quiescence_window,
        timeout=config.timeout,
    )

    with run_context("server", scenario_name):
        logger.info("Running probe", server_url=server_url)
        checks = await probe.run(server_url)
    result_dir = write_results(config.results_dir, "server", scenario_name, checks) if save else None
    return RunResult(role="server", scenario=scenario_name, checks=checks, result_dir=result_dir)


def scenario_error_check(scenario_name: str, error: BaseException) -> Check:
    return Check(
        id=f"{scenario_name}-error",
        name=f"{scenario_name} error",
        description=f"Scenario {scenario_name} raised before producing checks",
        status=CheckStatus.FAILURE,
        error_message=str(error) or type(error).__name__,
    )


async def run_batch(
    server_url: str,
    registry: ScenarioRegistry,
    scenario_names: Optional[Iterable[str]] = None,
    config: Optional[HarnessConfig] = None,
    save: bool = True,
) -> RunSummary:
    """Run several probes concurrently against one server.

    A probe that raises is reported as a single ``<scenario>-error`` FAILURE;
    the remaining probes still run.
    """
    names = list(scenario_names) if scenario_names else registry.list_probes()

    async def _run_one(name: str) -> RunResult:
        try:
            return await run_server_scenario(server_url, name, registry=registry, config=config, save=save)
        except Exception as e:
            logger.error("Scenario failed", scenario=name, error=str(e))
            return RunResult(role="server", scenario=name, checks=[scenario_error_check(name, e)])

    results = await asyncio.gather(*(_run_one(name) for name in names))
    return RunSummary(results=list(results))
