# Global knobs (hub defaults + diagnostics)
import logging
import os

# Default for SubscribeOptions.once
ONCE_DEFAULT = False

# ---------------------------------------------------------------------
# Logging
# The library only creates loggers under LOGGER_NAME; handlers are
# installed by configure_logging(), which only the CLI calls.
# ---------------------------------------------------------------------
LOGGER_NAME = "eventhub"
LOG_LEVEL = os.environ.get("EVENTHUB_LOG_LEVEL", "WARNING")
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Diagnostic message templates (lazy %-formatting, event key is the arg)
DUPLICATE_LISTENER_MSG = "Listener already subscribed: %r"
LISTENER_ERROR_MSG = "Listener error: %r"


def configure_logging(level=None):
    """Install a basic stream handler for the eventhub loggers."""
    level = level or LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger(LOGGER_NAME).setLevel(level)
    return level
