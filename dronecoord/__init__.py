"""Emergency drone coordination: survivor world, mission server, drone client and map view."""

__version__ = "0.1.0"