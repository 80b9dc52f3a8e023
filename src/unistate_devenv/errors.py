"""
unistate_devenv.errors

Exception hierarchy for the dev environment tooling.

Responsibilities:
- Give the CLI/API one base class (`DevEnvError`) to catch.
- Carry compose/engine output verbatim so failures surface as the runtime reported them.
"""

from __future__ import annotations

from collections.abc import Sequence


class DevEnvError(Exception):
    pass


class ComposeValidationError(DevEnvError):
    # Raised for structurally invalid compose documents (bad refs, cycles, malformed YAML).
    pass


class ComposeCommandError(DevEnvError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "no output"
        super().__init__(f"`{' '.join(self.argv)}` exited with {returncode}: {detail}")


class ReadinessTimeout(DevEnvError):
    def __init__(
        self, target: str, timeout: float, last_error: BaseException | None = None
    ) -> None:
        self.target = target
        self.timeout = timeout
        self.last_error = last_error
        msg = f"{target} not ready after {timeout:.1f}s"
        if last_error is not None:
            msg += f" (last error: {last_error!r})"
        super().__init__(msg)


# --- Module Notes -----------------------------------------------------------
# No retry policy lives here; the only recovery in this package is the readiness loop.
