"""Near-real-time earthquake monitor built on the USGS GeoJSON feeds."""

__version__ = "0.3.0"
