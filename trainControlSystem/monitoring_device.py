"""Monitoring device configuration.

A monitoring device is one of the locomotive safety monitors (vigilance,
overspeed, emergency stop, AWS). Each holds the thresholds and policy flags
read by the train control system. Devices are loaded once and then only
copied, never modified.
"""
from __future__ import annotations

import csv
import dataclasses
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict

from universal.universal import ConversionFunctions

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class MonitorKind(Enum):
    """Kinds of monitoring device a locomotive may carry."""
    VIGILANCE = "vigilance"
    OVERSPEED = "overspeed"
    EMERGENCY_STOP = "emergency_stop"
    AWS = "aws"


@dataclass(frozen=True)
class MonitoringDevice:
    """Thresholds and policy flags for one monitor.

    Attributes:
        monitor_time_s: Time from alerter reset to applying the penalty brake.
        alarm_time_s: Time from alerter reset to the audible and visible alarm.
        penalty_time_s: Minimum time the penalty stays applied.
        emergency_cuts_power: Lower pantographs on emergency.
        emergency_shuts_down_engine: Shut down the prime mover on emergency.
            Carried for alternative systems only, the built-in system ignores it.
        reset_on_zero_speed: Cancel an alarm once the train is stationary.
        reset_on_reset_button: Alerter button restarts the overspeed alarm timer.
        reset_level_mps: Speed at or below which an alarm cancels itself.
        applies_full_brake: Penalty applies a full service brake.
        applies_emergency_brake: Penalty applies the emergency brake (takes
            precedence over full brake).
        trigger_on_overspeed_mps: Absolute overspeed trigger, 0 disables.
        trigger_on_track_overspeed: Trigger relative to the current speed limit.
        trigger_on_track_overspeed_margin_mps: Margin above the current limit.
        critical_level_mps: Second absolute overspeed trigger, 0 disables.
        alarm_time_before_overspeed_s: Minimum warning time before the penalty.
    """

    monitor_time_s: float = 66.0
    alarm_time_s: float = 60.0
    penalty_time_s: float = 0.0
    emergency_cuts_power: bool = False
    emergency_shuts_down_engine: bool = False
    reset_on_zero_speed: bool = True
    reset_on_reset_button: bool = False
    reset_level_mps: float = 0.0
    applies_full_brake: bool = True
    applies_emergency_brake: bool = False

    # Overspeed monitor only
    trigger_on_overspeed_mps: float = 0.0
    trigger_on_track_overspeed: bool = False
    trigger_on_track_overspeed_margin_mps: float = 4.0
    critical_level_mps: float = 0.0
    alarm_time_before_overspeed_s: float = 5.0

    @property
    def vigilance_alarm_timeout_s(self) -> float:
        """Time between the alarm and the penalty; 0 if alarm_time_s >= monitor_time_s."""
        return max(0.0, self.monitor_time_s - self.alarm_time_s)

    @property
    def overspeed_alarm_time_s(self) -> float:
        return max(self.alarm_time_s, self.alarm_time_before_overspeed_s)

    def copy(self) -> MonitoringDevice:
        """Return an independent copy for a duplicated locomotive."""
        return dataclasses.replace(self)


_FIELD_TYPES = {f.name: f.type for f in dataclasses.fields(MonitoringDevice)}

_TIME_UNITS = {
    "": lambda v: v,
    "s": lambda v: v,
    "min": ConversionFunctions.minutes_to_seconds,
}

_SPEED_UNITS = {
    "": lambda v: v,
    "mps": lambda v: v,
    "kmh": ConversionFunctions.kmh_to_mps,
    "mph": ConversionFunctions.mph_to_mps,
}


def _parse_value(parameter: str, value: str, unit: str, row: int):
    if _FIELD_TYPES[parameter] == "bool":
        if value.lower() not in ("true", "false"):
            raise ValueError(
                f"Invalid boolean value for '{parameter}' in monitor file at row "
                f"{row}.")
        return value.lower() == "true"

    if not re.match(r"^-?[0-9]*\.?[0-9]+$", value):
        raise ValueError(
            f"Invalid numeric value for '{parameter}' in monitor file at row "
            f"{row}.")
    units = _SPEED_UNITS if parameter.endswith("_mps") else _TIME_UNITS
    if unit not in units:
        raise ValueError(
            f"Invalid unit '{unit}' for '{parameter}' in monitor file at row "
            f"{row}.")
    return float(units[unit](float(value)))


def load_monitoring_devices(config_file: str) -> Dict[MonitorKind, MonitoringDevice]:
    """Load monitoring devices from a CSV file.

    The file has the columns ``monitor,parameter,value,unit``. Parameters not
    listed keep their defaults; a monitor with no rows is not fitted.

    Args:
        config_file: Path to the monitor configuration file.

    Returns:
        Mapping of monitor kind to its device.

    Raises:
        ValueError: If a row is malformed.
    """
    logger.info("Loading monitoring devices from %s", config_file)
    settings: Dict[MonitorKind, Dict[str, object]] = {}

    with open(config_file, mode='r', newline='') as file:
        csvFile = csv.DictReader(file)
        current_line = 0
        for lines in csvFile:
            current_line += 1
            monitor = (lines.get("monitor") or "").strip().lower()
            parameter = (lines.get("parameter") or "").strip().lower()
            value = (lines.get("value") or "").strip()
            unit = (lines.get("unit") or "").strip().lower()
            if not monitor and not parameter:
                continue
            if not re.match("^(vigilance|overspeed|emergency_stop|aws)$", monitor):
                raise ValueError(
                    f"Invalid 'monitor' field in monitor file at row "
                    f"{current_line}.")
            if parameter not in _FIELD_TYPES:
                raise ValueError(
                    f"Invalid 'parameter' field in monitor file at row "
                    f"{current_line}.")

            kind = MonitorKind(monitor)
            settings.setdefault(kind, {})[parameter] = _parse_value(
                parameter, value, unit, current_line)

    devices = {kind: MonitoringDevice(**values) for kind, values in settings.items()}

    vigilance = devices.get(MonitorKind.VIGILANCE)
    if vigilance is not None and vigilance.alarm_time_s > vigilance.monitor_time_s:
        logger.warning(
            "Vigilance alarm time %.1f s exceeds monitor time %.1f s, "
            "penalty follows the alarm immediately",
            vigilance.alarm_time_s, vigilance.monitor_time_s)
    return devices
