"""Web Mercator and GeoJSON conversions."""
