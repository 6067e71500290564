from touchbase_edge.common.core.logging_config import setup_logging as common_setup_logging

from ..config import GatewayConfig


def setup_logging(gateway_config: GatewayConfig):
    """
    Load the YAML config and initialize logging.
    Falls back to basicConfig at LOG_LEVEL when the file is absent.
    """
    common_setup_logging(gateway_config.LOG_CONFIG_PATH, level=gateway_config.LOG_LEVEL)
