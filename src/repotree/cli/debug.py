"""Debug logging switch shared by the command group and --verbose."""

import logging

DEBUG_FORMAT = "[DEBUG %(name)s:%(lineno)d] %(message)s"


def configure_debug_logging() -> None:
    """Send DEBUG records from every repotree module to stderr."""
    logging.basicConfig(level=logging.DEBUG, format=DEBUG_FORMAT, force=True)
