"""Domain value objects."""

from talebox.domain.value_objects.client_environment import (
    ClientEnvironment,
    NetworkInfo,
)

__all__ = ["ClientEnvironment", "NetworkInfo"]
