"""
services/wit_service.py – ID6 lookup through Wiimms ISO Tools (wit).

Formats with a variable internal layout (CISO, WBI, WDF, WIA, GCZ, FST) are
not read directly; `wit id6 <image>` prints the ID6 on stdout instead.

Security notes
--------------
* All arguments passed to subprocess are provided as a list (never shell=True).
* The wit path comes from settings or the TDBMETA_BASE env var; it is never
  derived from the image path.
"""

import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Callable, Optional

from services.exceptions import HelperNotFoundError
from services.id_extraction_service import validate_id6

logger = logging.getLogger(__name__)

# ── Types ────────────────────────────────────────────────────────────────────

# Same call shape as subprocess.run; injected so tests never spawn processes.
Runner = Callable[..., "subprocess.CompletedProcess[str]"]

WIT_SUBCOMMAND: str = "id6"

# ── Binary resolution ────────────────────────────────────────────────────────


def default_wit_path() -> Path:
    """Bundled wit location: $TDBMETA_BASE/bin/wit/bin/wit[.exe]."""
    base = Path(os.environ.get("TDBMETA_BASE", os.path.abspath(".")))
    name = "wit.exe" if sys.platform == "win32" else "wit"
    return base / "bin" / "wit" / "bin" / name


# ── Resolver ─────────────────────────────────────────────────────────────────


class WitResolver:
    """
    Resolves an image path to an ID6 by running wit.

    Parameters
    ----------
    wit_path : Explicit executable path; defaults to default_wit_path().
    runner   : subprocess.run-compatible callable.
    timeout  : Optional limit in seconds; None waits for wit to exit.
    """

    def __init__(
        self,
        wit_path: Optional[Path] = None,
        *,
        runner: Runner = subprocess.run,
        timeout: Optional[float] = None,
    ) -> None:
        self.wit_path = Path(wit_path) if wit_path else default_wit_path()
        self._runner = runner
        self._timeout = timeout

    def __call__(self, path: Path) -> Optional[str]:
        return self.resolve(path)

    def resolve(self, path: Path) -> Optional[str]:
        """
        Run `wit id6 <path>` and validate its output.

        Returns
        -------
        The ID6, or None when wit printed something that is not a valid ID6.

        Raises
        ------
        HelperNotFoundError when the wit executable is missing.
        """
        if not self.wit_path.exists():
            raise HelperNotFoundError(self.wit_path)

        cmd = [str(self.wit_path), WIT_SUBCOMMAND, str(path)]
        logger.debug("Launching wit for %s", path)

        try:
            result = self._runner(
                cmd,
                capture_output=True,
                text=True,
                shell=False,
                timeout=self._timeout,
            )
        except FileNotFoundError as exc:
            raise HelperNotFoundError(self.wit_path) from exc

        for line in (result.stderr or "").splitlines():
            if line.strip():
                logger.warning("wit stderr: %s", line.rstrip())

        if result.returncode != 0:
            logger.warning("wit exited with code %s for %s", result.returncode, path)

        output = (result.stdout or "").strip()
        id6 = validate_id6(output)
        if id6 is None:
            logger.debug("wit output is not a valid ID6 for %s: %r", path.name, output)
        return id6
