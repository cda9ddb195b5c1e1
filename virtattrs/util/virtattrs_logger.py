import logging
import sys
from pythonjsonlogger import jsonlogger


from virtattrs.app_cfg import VirtAttrsAppCfg


LOGGER_NAME = "virtattrs"

"""
Logging format to be used by all virtattrs modules
Uses structure json format https://pypi.org/project/python-json-logger/
By default, log level is set by environment, but can be overriden by
the env param `LOG_LEVEL`
"""

cfg = VirtAttrsAppCfg()

# the LOG_LEVEL env variable will override
if cfg.log_level is not None:
    log_level = cfg.log_level.upper()
else:
    # determine a default log level by environment
    if cfg.deploy_env_label in ["dev", "local"]:
        log_level = logging.DEBUG
    elif cfg.deploy_env_label == "live":
        log_level = logging.WARNING
    else:
        log_level = logging.INFO

logger = logging.getLogger(LOGGER_NAME)
logger.setLevel(log_level)
logger.propagate = True
logHandler = logging.StreamHandler(sys.stdout)
json_formatter = jsonlogger.JsonFormatter(
    fmt="%(levelname)s %(asctime)s %(message)s %(module)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logHandler.setFormatter(json_formatter)
logger.addHandler(logHandler)


def get_logger():
    return logging.getLogger(LOGGER_NAME)
