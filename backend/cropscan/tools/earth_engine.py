"""
Google Earth Engine satellite metrics.

Aggregates three gridded datasets around a single point:
- LANDSAT/LC08/C02/T1_TOA   (Landsat-8 TOA, NDVI from B5/B4, 30m)
- NASA/SMAP/SPL3SMP_E/006   (SMAP enhanced L3, topsoil moisture AM pass, 9km)
- UCSB-CHG/CHIRPS/DAILY     (CHIRPS daily precipitation, ~5km)

Authentication uses the service-account JSON supplied in configuration and
happens once, at process start. All calls here block on `getInfo()`; callers
run them through `asyncio.to_thread`.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import ee

log = logging.getLogger("cropscan.earth_engine")


@dataclass(frozen=True)
class SatelliteDataset:
    field: str
    collection: str
    band: str
    start: str
    end: str
    scale: int
    ndvi_bands: Optional[Tuple[str, str]] = None   # (NIR, Red) when the band is derived


NDVI = SatelliteDataset(
    "ndvi", "LANDSAT/LC08/C02/T1_TOA", "NDVI", "2024-01-25", "2024-03-05", 30, ndvi_bands=("B5", "B4")
)
SOIL_MOISTURE = SatelliteDataset(
    "soil_moisture_top", "NASA/SMAP/SPL3SMP_E/006", "soil_moisture_am", "2024-01-28", "2024-03-02", 9000
)
RAINFALL = SatelliteDataset(
    "rainfall", "UCSB-CHG/CHIRPS/DAILY", "precipitation", "2024-03-01", "2024-03-02", 5000
)

DATASETS = (NDVI, SOIL_MOISTURE, RAINFALL)


class EarthEngineSatellite:
    """Thin wrapper around the `ee` client, authenticated with a service account."""

    def __init__(self, service_account: Dict[str, Any]):
        self._service_account = service_account
        self.initialized = False

    def authenticate(self) -> None:
        """Authenticate once. Errors propagate: the server must not start without Earth Engine."""
        email = self._service_account.get("client_email")
        credentials = ee.ServiceAccountCredentials(email, key_data=json.dumps(self._service_account))
        ee.Initialize(credentials, project=self._service_account.get("project_id"))
        self.initialized = True
        log.info("Successfully authenticated with Google Earth Engine as %s", email)

    def mean_value(self, dataset: SatelliteDataset, lat: float, lon: float) -> Optional[float]:
        """
        Mean of `dataset.band` over the point for the dataset's fixed window.
        Returns None when the collection is empty or the band has no value there.
        """
        point = ee.Geometry.Point([lon, lat])
        collection = (
            ee.ImageCollection(dataset.collection)
            .filterBounds(point)
            .filterDate(dataset.start, dataset.end)
        )

        count = collection.size().getInfo()
        log.debug("%s collection count: %s", dataset.collection, count)
        if not count:
            log.warning("No data in %s for (%s, %s) between %s and %s",
                        dataset.collection, lat, lon, dataset.start, dataset.end)
            return None

        if dataset.ndvi_bands:
            nir, red = dataset.ndvi_bands
            collection = collection.map(
                lambda image: image.addBands(image.normalizedDifference([nir, red]).rename(dataset.band))
            )

        stats = collection.mean().reduceRegion(
            reducer=ee.Reducer.mean(),
            geometry=point,
            scale=dataset.scale,
            maxPixels=1e9,
        ).getInfo() or {}

        value = stats.get(dataset.band)
        return float(value) if value is not None else None
