"""Folkfeed: British folklore and UK foraging feed aggregator."""

__version__ = "0.1.0"
