""" Logging setup for the hyperscribe namespace. Modules log through
    ``logging.getLogger(__name__)``, this only attaches handlers.
"""

### IMPORTS ###
import sys
import logging

### CONSTANTS ###

LOG_FORMAT = '%(asctime)s %(levelname)-7s [%(name)s] %(message)s'
DATE_FORMAT = '%H:%M:%S'

### FUNCTIONS ###

def setup_logging(level=logging.INFO, log_file=None):
    """ Sends hyperscribe log records to stdout, and optionally to a file.
        Calling it again replaces the handlers of an earlier call.

        :param level:     Level for the logger and its handlers.
        :param log_file:  Path of a log file, overwritten on each call.
    """
    logger = logging.getLogger('hyperscribe')
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging to %s at level %s.",
                 log_file or 'stdout', logging.getLevelName(level))
    return logger
