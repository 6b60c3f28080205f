"""Capability interface between a train control system and its host.

A train control system never touches the locomotive directly. It reads the
train state and issues commands through ``TrainControlPorts``; the host (see
``train_control_backend``) provides the implementation, and tests provide a
fake.
"""
from abc import ABC, abstractmethod
from enum import Enum

from universal.universal import SignalAspect


class SoundCue(Enum):
    """Sound cues a train control system may request."""
    INFO1 = "info1"
    INFO2 = "info2"
    PENALTY1 = "penalty1"
    PENALTY2 = "penalty2"
    SYSTEM_ACTIVATE = "system_activate"
    SYSTEM_DEACTIVATE = "system_deactivate"


class TrainControlPorts(ABC):
    """Queries and commands available to a train control system."""

    # ---- queries ----
    @abstractmethod
    def clock_time(self) -> float:
        """Simulation clock in seconds."""

    @abstractmethod
    def distance_m(self) -> float:
        """Distance travelled by the locomotive."""

    @abstractmethod
    def speed_mps(self) -> float:
        """Absolute speed of the locomotive."""

    @abstractmethod
    def is_brake_emergency(self) -> bool: ...

    @abstractmethod
    def is_brake_full_service(self) -> bool: ...

    @abstractmethod
    def current_signal_speed_limit_mps(self) -> float:
        """Limit set by the last signal passed, negative if none."""

    @abstractmethod
    def current_post_speed_limit_mps(self) -> float: ...

    @abstractmethod
    def train_speed_limit_mps(self) -> float:
        """Static speed limit of the train."""

    @abstractmethod
    def is_alerter_enabled(self) -> bool: ...

    @abstractmethod
    def alerter_sound(self) -> bool:
        """True while the vigilance alarm is sounding."""

    @abstractmethod
    def next_signal_speed_limit_mps(self, index: int) -> float: ...

    @abstractmethod
    def next_signal_aspect(self, index: int) -> SignalAspect: ...

    @abstractmethod
    def next_signal_distance_m(self, index: int) -> float: ...

    @abstractmethod
    def next_post_speed_limit_mps(self, index: int) -> float: ...

    @abstractmethod
    def next_post_distance_m(self, index: int) -> float: ...

    @abstractmethod
    def speed_curve(self, target_distance_m: float, target_speed_mps: float,
                    slope: float, delay_s: float, deceleration_mps2: float) -> float: ...

    @abstractmethod
    def distance_curve(self, current_speed_mps: float, target_speed_mps: float,
                       slope: float, delay_s: float, deceleration_mps2: float) -> float: ...

    # ---- commands ----
    @abstractmethod
    def set_full_brake(self) -> None: ...

    @abstractmethod
    def set_emergency_brake(self) -> None: ...

    @abstractmethod
    def set_throttle_controller(self, value: float) -> None: ...

    @abstractmethod
    def set_dynamic_brake_controller(self, value: float) -> None: ...

    @abstractmethod
    def set_pantographs_down(self) -> None: ...

    @abstractmethod
    def set_horn(self, on: bool) -> None: ...

    @abstractmethod
    def set_vigilance_alarm(self, on: bool) -> None:
        """Turn the audible vigilance alarm on or off."""

    @abstractmethod
    def set_vigilance_alarm_display(self, value: bool) -> None: ...

    @abstractmethod
    def set_vigilance_emergency_display(self, value: bool) -> None: ...

    @abstractmethod
    def set_overspeed_warning_display(self, value: bool) -> None: ...

    @abstractmethod
    def set_penalty_application_display(self, value: bool) -> None: ...

    @abstractmethod
    def set_current_speed_limit_mps(self, value: float) -> None: ...

    @abstractmethod
    def set_next_speed_limit_mps(self, value: float) -> None: ...

    @abstractmethod
    def set_next_signal_aspect(self, aspect: SignalAspect) -> None: ...

    @abstractmethod
    def trigger_sound(self, cue: SoundCue) -> None: ...
