from .replay import ReplayLocationProvider, ReplaySubscription

__all__ = ["ReplayLocationProvider", "ReplaySubscription"]
