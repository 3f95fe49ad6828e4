"""Client runtime environment as reported by the listening device.

Hey future me - browsers expose the Network Information API (effectiveType,
downlink, rtt, saveData). Over HTTP the same data arrives as client hints
(ECT, Downlink, RTT, Save-Data). We capture it ONCE when a player screen
mounts; the session never re-reads it.
"""

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class NetworkInfo:
    """Snapshot of the client's connection quality."""

    effective_type: str = "unknown"
    downlink: float = 0.0
    rtt: int = 0
    save_data: bool = False


@dataclass(frozen=True)
class ClientEnvironment:
    """User agent plus network hints of the device that hosts the player."""

    user_agent: str = ""
    effective_type: str = "unknown"
    downlink: float = 0.0
    rtt: int = 0
    save_data: bool = False

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "ClientEnvironment":
        """Build from request headers (User-Agent + network client hints).

        Malformed numeric hints are ignored rather than rejected.
        """
        lowered = {key.lower(): value for key, value in headers.items()}

        try:
            downlink = float(lowered.get("downlink", "0") or 0)
        except ValueError:
            downlink = 0.0
        try:
            rtt = int(float(lowered.get("rtt", "0") or 0))
        except ValueError:
            rtt = 0

        return cls(
            user_agent=lowered.get("user-agent", ""),
            effective_type=(lowered.get("ect") or "unknown").strip().lower(),
            downlink=downlink,
            rtt=rtt,
            save_data=lowered.get("save-data", "").strip().lower() == "on",
        )
