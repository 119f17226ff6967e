"""Lifecycle hook invocation.

Hooks are user scripts named in the registry.  Export hooks run through
``sh -c`` so they may be shell snippets; import hooks are executed
directly.  Either way the hook takes no arguments and inherits the
working directory, environment and stdio of dotman itself.

Two policies:

* ``DETACH`` (default) -- spawn and return; the exit status is never
  looked at.
* ``WAIT`` -- block until the hook exits and log a warning on a non-zero
  status.  The status still does not fail the operation.

A hook that cannot be *started* raises ``HookStartError``.
"""

from __future__ import annotations

import logging
import subprocess
from enum import Enum
from pathlib import Path

from dotman.errors import HookStartError
from dotman.sync.models import HookKind, names_a_file

logger = logging.getLogger(__name__)

_SHELL_HOOKS = frozenset({HookKind.EXPORT})


class HookPolicy(str, Enum):
    DETACH = "detach"
    WAIT = "wait"


class HookInvoker:
    """Launch hook commands according to a ``HookPolicy``.

    Args:
        policy: Whether to wait for hooks to finish.
        shell: Shell used for export hooks.
    """

    def __init__(
        self,
        policy: HookPolicy = HookPolicy.DETACH,
        shell: str = "sh",
    ) -> None:
        self.policy = HookPolicy(policy)
        self.shell = shell

    def command_for(self, hook_path: Path, kind: HookKind) -> list[str]:
        """Return the argv used to run *hook_path* as a *kind* hook."""
        if kind in _SHELL_HOOKS:
            return [self.shell, "-c", str(hook_path)]
        return [str(hook_path)]

    def invoke(
        self, hook_path: Path | None, kind: HookKind
    ) -> subprocess.Popen | None:
        """Run the hook at *hook_path*, if there is one.

        Returns:
            The spawned process, or ``None`` when *hook_path* is absent.

        Raises:
            HookStartError: If the process could not be started.
        """
        if hook_path is None or not names_a_file(hook_path):
            return None

        argv = self.command_for(hook_path, kind)
        logger.info("calling %s hook %s", kind.value, hook_path)
        try:
            proc = subprocess.Popen(argv)
        except OSError as exc:
            raise HookStartError(
                f'"{kind.value}" hook script {hook_path} failed to start: {exc}',
                path=hook_path,
                operation=f"{kind.value}_hook",
            ) from exc

        if self.policy is HookPolicy.WAIT:
            returncode = proc.wait()
            if returncode != 0:
                logger.warning(
                    '"%s" hook %s exited with status %d',
                    kind.value,
                    hook_path,
                    returncode,
                )
        return proc
