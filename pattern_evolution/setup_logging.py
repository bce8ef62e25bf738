import logging
import sys


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure the root logger for command-line use.
    - Timestamped single-line format.
    - Output to stdout.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s:%(lineno)d | %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,  # drop handlers left by a previous call
    )

    logging.getLogger("pattern_evolution").setLevel(level)
    logging.getLogger("numba").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
