"""
Universal data structures and conversion functions for the train control system.
"""
from enum import Enum

GRAVITY_MPS2 = 9.80665  # m/s^2


class SignalAspect(Enum):
    """Enumeration of cab signal aspects, most permissive first."""
    NONE = "none"
    CLEAR_2 = "clear_2"
    CLEAR_1 = "clear_1"
    APPROACH_3 = "approach_3"
    APPROACH_2 = "approach_2"
    APPROACH_1 = "approach_1"
    RESTRICTED = "restricted"
    STOP_AND_PROCEED = "stop_and_proceed"
    STOP = "stop"
    PERMISSION = "permission"


class TravelDirection(Enum):
    """Direction of travel of the multiple-unit consist.
    Forward uses the forward object list, reverse the backward one."""
    FORWARD = "forward"
    REVERSE = "reverse"


class ConversionFunctions:
    """Holds conversion factors for various units."""

    @staticmethod
    def mph_to_mps(mph):
        return mph * 0.44704  # conversion factor

    @staticmethod
    def mps_to_mph(mps):
        return mps / 0.44704  # conversion factor

    @staticmethod
    def kmh_to_mps(kmh):
        return kmh / 3.6  # conversion factor

    @staticmethod
    def mps_to_kmh(mps):
        return mps * 3.6  # conversion factor

    @staticmethod
    def minutes_to_seconds(minutes):
        return minutes * 60.0


class TrainEvent(Enum):
    """Events signalled by a locomotive to its sound and display handlers."""
    HORN_ON = "horn_on"
    HORN_OFF = "horn_off"
    VIGILANCE_ALARM_ON = "vigilance_alarm_on"
    VIGILANCE_ALARM_OFF = "vigilance_alarm_off"
    PANTOGRAPH_1_DOWN = "pantograph_1_down"
    PANTOGRAPH_2_DOWN = "pantograph_2_down"
    TCS_INFO1 = "tcs_info1"
    TCS_INFO2 = "tcs_info2"
    TCS_PENALTY1 = "tcs_penalty1"
    TCS_PENALTY2 = "tcs_penalty2"
    TCS_ACTIVATE = "tcs_activate"
    TCS_DEACTIVATE = "tcs_deactivate"
