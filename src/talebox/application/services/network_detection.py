"""Mobile device and slow network detection."""

import re

from talebox.domain.value_objects import ClientEnvironment, NetworkInfo

_MOBILE_UA = re.compile(
    r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE
)

SLOW_EFFECTIVE_TYPES = frozenset({"slow-2g", "2g"})


def detect_mobile_device(user_agent: str) -> bool:
    """True for phone/tablet user agents."""
    return bool(user_agent) and _MOBILE_UA.search(user_agent) is not None


def get_network_info(environment: ClientEnvironment) -> NetworkInfo:
    """Network quality snapshot of the client."""
    return NetworkInfo(
        effective_type=environment.effective_type or "unknown",
        downlink=environment.downlink,
        rtt=environment.rtt,
        save_data=environment.save_data,
    )


def is_slow_network(environment: ClientEnvironment) -> bool:
    """2G-class connections and data-saver mode count as slow."""
    info = get_network_info(environment)
    return info.effective_type in SLOW_EFFECTIVE_TYPES or info.save_data
