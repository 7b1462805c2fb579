# probes/base.py
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple


class BaseProber(ABC):
    """Abstract base class for the per-host discovery probes.

    Every probe is bounded by its own timeout and never raises: a failed or
    timed-out probe reports "not alive" or ``None``.
    """

    @abstractmethod
    def is_alive(self, ip: str) -> bool:
        """Sends a single reachability check to ``ip``."""
        pass

    @abstractmethod
    def resolve_neighbor(self, ip: str) -> Optional[str]:
        """Returns the resolved MAC for ``ip`` from the neighbor table.

        Incomplete entries are treated as absent.
        """
        pass

    @abstractmethod
    def resolve_hostname(self, ip: str) -> Optional[str]:
        """Reverse-DNS lookup for ``ip``; ``None`` when there is no PTR record."""
        pass

    @abstractmethod
    def snapshot_neighbor_table(self) -> List[Tuple[str, str]]:
        """Dumps every resolved (ip, mac) pair of the neighbor table."""
        pass

    def close(self) -> None:
        """Releases resources held by the prober."""
        pass
