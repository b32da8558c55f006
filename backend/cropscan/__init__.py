"""CropScan backend: thin FastAPI proxy for crop disease scans, weather/soil advice and voice help."""

__version__ = "1.0.0"
