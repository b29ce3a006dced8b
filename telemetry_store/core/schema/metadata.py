"""
Telemetry path metadata lookup.

Schema inference consults the external metadata service only for attributes
the batch itself cannot type. Every lookup fails open: a slow, broken or
absent service means "no metadata", never an error.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping

import httpx

from telemetry_store.observability import metrics
from telemetry_store.observability.logger import get_logger

logger = get_logger(__name__)

# Units that identify a physical quantity stored as a number
NUMERIC_UNITS = frozenset({
    "m",      # length
    "deg",    # angle
    "rad",    # angle
    "m/s",    # velocity
    "Pa",     # pressure
    "K",      # temperature
    "V",      # voltage
    "A",      # current
    "Hz",     # frequency
    "ratio",
    "kg",     # mass
    "J",      # energy
})


def is_numeric_unit(units: str | None) -> bool:
    """Whether a unit symbol belongs to the numeric allow-list."""
    return units is not None and units in NUMERIC_UNITS


class MetadataProvider(ABC):
    """Source of declared units for telemetry paths."""

    @abstractmethod
    def get_units(self, path: str) -> str | None:
        """
        Look up the declared unit symbol of a telemetry path.

        Args:
            path: Dot-separated telemetry path

        Returns:
            Unit symbol, or None when unknown or the lookup failed
        """
        pass

    def numeric_units(self, path: str | None) -> str | None:
        """Unit symbol for path if it is in the numeric allow-list, else None."""
        if not path:
            return None
        units = self.get_units(path)
        return units if is_numeric_unit(units) else None


class NullMetadataProvider(MetadataProvider):
    """Provider that never knows anything."""

    def get_units(self, path: str) -> str | None:
        return None


class StaticMetadataProvider(MetadataProvider):
    """Provider backed by a fixed path -> units mapping."""

    def __init__(self, units_by_path: Mapping[str, str] | None = None):
        self.units_by_path = dict(units_by_path or {})
        self.lookups: list[str] = []

    def get_units(self, path: str) -> str | None:
        self.lookups.append(path)
        return self.units_by_path.get(path)


class HttpMetadataProvider(MetadataProvider):
    """
    Provider that queries the telemetry server's REST metadata endpoint.

    GET {base_url}/signalk/v1/api/vessels/self/<path as segments>/meta is
    expected to answer {"units": "..."}. Answers are cached per instance;
    failed lookups are not, so a recovered service is picked up again.
    """

    API_PREFIX = "/signalk/v1/api/vessels/self"

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout: float = 2.0,
        client: httpx.Client | None = None,
    ):
        """
        Initialize HTTP metadata provider.

        Args:
            base_url: Root URL of the telemetry server
            timeout: Per-request timeout in seconds
            client: Optional preconfigured httpx client (tests inject a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = client or httpx.Client(timeout=timeout)
        self._cache: dict[str, str | None] = {}

    def metadata_url(self, path: str) -> str:
        return f"{self.base_url}{self.API_PREFIX}/{path.replace('.', '/')}/meta"

    def get_units(self, path: str) -> str | None:
        if path in self._cache:
            metrics.increment_counter(metrics.metadata_lookups_total, outcome="cached")
            return self._cache[path]

        url = self.metadata_url(path)
        try:
            response = self.client.get(url, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.debug(f"Metadata request failed for {path}: {e}")
            metrics.increment_counter(metrics.metadata_lookups_total, outcome="error")
            return None

        if not response.is_success:
            logger.debug(f"Metadata request for {path} returned {response.status_code}")
            metrics.increment_counter(metrics.metadata_lookups_total, outcome="error")
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.debug(f"Metadata response for {path} is not JSON")
            metrics.increment_counter(metrics.metadata_lookups_total, outcome="error")
            return None

        units = payload.get("units") if isinstance(payload, dict) else None
        if not isinstance(units, str):
            units = None

        self._cache[path] = units
        metrics.increment_counter(
            metrics.metadata_lookups_total, outcome="hit" if units else "miss"
        )
        return units

    def close(self) -> None:
        self.client.close()
