"""Scheduled maintenance sweeps over stored events and users."""

from realtea_engine.pipeline.maintenance import MaintenanceJobs

__all__ = ["MaintenanceJobs"]
