from dataclasses import replace

from common.exceptions import InvalidTransition
from drivers.models import Driver, DriverStatus


def mark_driver_active(driver: Driver) -> Driver:
    """
    Called when a ride is assigned to the driver.
    An offline driver cannot be handed work.
    """
    if driver.status == DriverStatus.OFFLINE:
        raise InvalidTransition(driver.id, driver.status.value, "assign a ride to")
    if driver.status == DriverStatus.ACTIVE:
        return driver
    return replace(driver, status=DriverStatus.ACTIVE)


def mark_driver_idle(driver: Driver) -> Driver:
    """
    Called when the driver's ride completes or is cancelled.
    Offline drivers stay offline; going back online is an explicit step.
    """
    if driver.status == DriverStatus.OFFLINE:
        return driver
    return replace(driver, status=DriverStatus.IDLE)


def take_driver_offline(driver: Driver) -> Driver:
    return replace(driver, status=DriverStatus.OFFLINE)


def bring_driver_online(driver: Driver) -> Driver:
    """offline -> idle. Drivers already online are returned unchanged."""
    if driver.status != DriverStatus.OFFLINE:
        return driver
    return replace(driver, status=DriverStatus.IDLE)
