"""Pulumi entry point for the SSM host infrastructure."""
import logging

import structlog

from ssmhost_infra.__main__ import SsmHostStack
from ssmhost_infra.config import StackConfig

structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.INFO))
SsmHostStack(config=StackConfig.load()).run()
