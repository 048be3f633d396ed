"""Compute Engine resource handles."""

from micro_gce.compute.autoscaler import Autoscaler
from micro_gce.compute.compute import Compute
from micro_gce.compute.operation import Operation
from micro_gce.compute.zone import Zone

__all__ = [
    "Autoscaler",
    "Compute",
    "Operation",
    "Zone",
]
