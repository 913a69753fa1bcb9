"""Root logger setup for the command line."""

from __future__ import annotations

import logging


def configure_logging(*, level: int | str = logging.INFO, force: bool = False) -> None:
    """Send records to stderr as ``time level [logger] message``.

    Library code only creates module loggers; the CLI calls this once per run.
    ``force`` replaces handlers a previous call (or the test runner) installed.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
