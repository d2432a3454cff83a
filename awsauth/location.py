"""
Process-lifetime cache of whether the instance metadata service is reachable.
"""

import logging
import socket
import threading
from dataclasses import dataclass
from typing import Callable, Tuple

from .constants import METADATA_HOST, METADATA_PORT, METADATA_PROBE_TIMEOUT
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocationStatus:
    checked: bool = False
    reachable: bool = False


class LocationCache:
    """
    Probes the metadata address once and remembers the answer.

    The first call to is_metadata_service_reachable() opens a TCP
    connection with a short timeout. The result is never re-probed, so a
    network change later in the process lifetime goes unnoticed.
    """

    def __init__(
        self,
        address: Tuple[str, int] = (METADATA_HOST, METADATA_PORT),
        timeout: float = METADATA_PROBE_TIMEOUT,
        connect: Callable[..., socket.socket] = socket.create_connection,
    ):
        if timeout <= 0:
            raise ConfigurationError("timeout must be positive")

        self.address = address
        self.timeout = timeout
        self._connect = connect
        self._status = LocationStatus()
        self._lock = threading.Lock()

    @property
    def status(self) -> LocationStatus:
        return self._status

    def is_metadata_service_reachable(self) -> bool:
        """Return the cached reachability, probing on first use."""
        with self._lock:
            if not self._status.checked:
                self._status = LocationStatus(checked=True, reachable=self._probe())
            return self._status.reachable

    def _probe(self) -> bool:
        host, port = self.address
        try:
            conn = self._connect(self.address, timeout=self.timeout)
        except OSError as e:
            logger.debug("Metadata service %s:%d unreachable: %s", host, port, e)
            return False
        conn.close()
        logger.debug("Metadata service %s:%d reachable", host, port)
        return True
