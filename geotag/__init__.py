"""geotag - classify hosts against a geosite rule catalog."""

__version__ = "0.1.0"
