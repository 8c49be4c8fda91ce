"""
tandem package initializer.

This package contains the simulation engine, station state, event handlers,
random variate sources, and statistics collection for the two-station tandem
queue with a fixed run length.
"""
__all__ = [
    "queues", "stations", "network", "arrivals",
    "metrics", "config", "report", "simulation",
]
