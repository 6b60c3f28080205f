"""
train_control_backend.py
Host side of the train control system for one locomotive.

Implements:
- ownership of the locomotive's monitoring devices
- per-tick signal lookahead cache
- the TrainControlPorts capabilities, backed by the locomotive
- display state read by the cab (alarm flags, speed limits, cab signal)
- driver alerter input and emergency requests
- sound cue dispatch to registered event handlers
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from trainControlSystem import braking_curves
from trainControlSystem.monitoring_device import MonitorKind, MonitoringDevice
from trainControlSystem.ports import SoundCue, TrainControlPorts
from trainControlSystem.signal_lookahead import SignalLookahead
from trainControlSystem.train_control_system import (
    MonitoringTrainControlSystem,
    TCSEvent,
    TrainControlSystem,
)
from universal.universal import SignalAspect, TrainEvent

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

EventHandler = Callable[[TrainEvent, TrainControlSystem], None]

SOUND_CUE_EVENTS = {
    SoundCue.INFO1: TrainEvent.TCS_INFO1,
    SoundCue.INFO2: TrainEvent.TCS_INFO2,
    SoundCue.PENALTY1: TrainEvent.TCS_PENALTY1,
    SoundCue.PENALTY2: TrainEvent.TCS_PENALTY2,
    SoundCue.SYSTEM_ACTIVATE: TrainEvent.TCS_ACTIVATE,
    SoundCue.SYSTEM_DEACTIVATE: TrainEvent.TCS_DEACTIVATE,
}


@dataclass
class TrainControlSettings:
    """Simulator settings affecting the alerter.

    Attributes:
        alerter: Alerter enabled in the simulator options.
        alerter_disable_external: Disable the alerter outside the cab view.
    """
    alerter: bool = True
    alerter_disable_external: bool = False


def monitoring_system_factory(backend: TrainControlSystemBackend) -> TrainControlSystem:
    """Build the built-in monitoring system from the backend's devices."""
    return MonitoringTrainControlSystem(
        vigilance_monitor=backend.devices.get(MonitorKind.VIGILANCE),
        overspeed_monitor=backend.devices.get(MonitorKind.OVERSPEED),
        emergency_stop_monitor=backend.devices.get(MonitorKind.EMERGENCY_STOP),
        aws_monitor=backend.devices.get(MonitorKind.AWS),
        emergency_causes_throttle_down=backend.locomotive.emergency_causes_throttle_down,
        emergency_engages_horn=backend.locomotive.emergency_engages_horn,
    )


class TrainControlSystemBackend(TrainControlPorts):
    """Train control system wiring for one locomotive.

    The locomotive is any object providing ``clock_time()``, ``distance_m``,
    ``speed_mps``, ``direction``, ``alerter_sound``, ``get_train_info()``,
    ``allowed_max_speed_signal_mps``, ``allowed_max_speed_limit_mps``,
    ``is_brake_emergency()``, ``is_brake_full_service()``,
    ``set_full_brake()``, ``set_emergency_brake()``, ``set_throttle(v)``,
    ``set_dynamic_brake(v)``, ``signal_event(event)``, ``in_cab_view()``,
    ``emergency_causes_throttle_down`` and ``emergency_engages_horn``.
    ``trainModel.train_model_backend.LocomotiveModel`` is one.

    Attributes:
        locomotive: Host locomotive.
        devices: Monitoring devices fitted to the locomotive.
        settings: Alerter settings.
        system: Active train control system, None until initialized.
        vigilance_alarm: Vigilance alarm display.
        vigilance_emergency: Vigilance emergency display.
        overspeed_warning: Overspeed warning display.
        penalty_application: Penalty application display.
        current_speed_limit_mps: Current speed limit display.
        next_speed_limit_mps: Next speed limit display.
        cab_signal_aspect: Cab signal display.
    """

    def __init__(self, locomotive: Any,
                 devices: Optional[Dict[MonitorKind, MonitoringDevice]] = None,
                 settings: Optional[TrainControlSettings] = None,
                 system_factory: Optional[
                     Callable[[TrainControlSystemBackend], TrainControlSystem]] = None) -> None:
        self.locomotive = locomotive
        self.devices: Dict[MonitorKind, MonitoringDevice] = dict(devices or {})
        self.settings = settings or TrainControlSettings()
        self.system_factory = system_factory or monitoring_system_factory
        self.system: Optional[TrainControlSystem] = None

        self.lookahead = SignalLookahead(locomotive.get_train_info,
                                         lambda: locomotive.direction)
        self.alerter_button_pressed = False
        self.activated = False
        self._alerter_enabled = self.settings.alerter
        self._event_handlers: List[EventHandler] = []

        # Display state
        self.vigilance_alarm = False
        self.vigilance_emergency = False
        self.overspeed_warning = False
        self.penalty_application = False
        self.current_speed_limit_mps = 0.0
        self.next_speed_limit_mps = 0.0
        self.cab_signal_aspect = SignalAspect.NONE

    def clone(self, new_locomotive: Any) -> TrainControlSystemBackend:
        """Copy for a duplicated locomotive: same configuration, fresh state."""
        return TrainControlSystemBackend(
            new_locomotive,
            devices={kind: device.copy() for kind, device in self.devices.items()},
            settings=dataclasses.replace(self.settings),
            system_factory=self.system_factory,
        )

    # ---- lifecycle ----
    def initialize(self) -> None:
        self._alerter_enabled = self.settings.alerter
        self.system = self.system_factory(self)
        self.system.attach(self)
        self.system.initialize()
        self.activated = True

    def update(self) -> None:
        """Run the train control system for one tick."""
        if self.system is None:
            return

        self.lookahead.clear()

        self._alerter_enabled = self.settings.alerter and not (
            self.settings.alerter_disable_external
            and not self.locomotive.in_cab_view())

        self.system.update()

    def on_clock_tick(self, current_time) -> None:
        """Called by global clock each tick."""
        self.update()

    # ---- driver / host input ----
    def alerter_pressed(self, pressed: bool) -> None:
        self.alerter_button_pressed = pressed
        self._send_event(TCSEvent.ALERTER_PRESSED if pressed else TCSEvent.ALERTER_RELEASED)

    def alerter_reset(self) -> None:
        self._send_event(TCSEvent.ALERTER_RESET)

    def set_emergency(self) -> None:
        if self.system is not None:
            self.system.set_emergency()
        else:
            self.locomotive.set_emergency_brake()

    def _send_event(self, event: TCSEvent, message: str = "") -> None:
        if self.system is not None:
            self.system.handle_event(event, message)

    # ---- event handlers ----
    def add_event_handler(self, handler: EventHandler) -> None:
        if handler not in self._event_handlers:
            self._event_handlers.append(handler)

    def remove_event_handler(self, handler: EventHandler) -> None:
        if handler in self._event_handlers:
            self._event_handlers.remove(handler)

    def _handle_event(self, event: TrainEvent) -> None:
        for handler in list(self._event_handlers):
            try:
                handler(event, self.system)
            except Exception:
                logger.exception("Event handler raised for %s", event.value)

    def report_state(self) -> Dict[str, Any]:
        """Return the display state for the cab."""
        return {
            "activated": self.activated,
            "vigilance_alarm": self.vigilance_alarm,
            "vigilance_emergency": self.vigilance_emergency,
            "overspeed_warning": self.overspeed_warning,
            "penalty_application": self.penalty_application,
            "current_speed_limit_mps": self.current_speed_limit_mps,
            "next_speed_limit_mps": self.next_speed_limit_mps,
            "cab_signal_aspect": self.cab_signal_aspect.value,
        }

    # ---- TrainControlPorts: queries ----
    def clock_time(self) -> float:
        return self.locomotive.clock_time()

    def distance_m(self) -> float:
        return self.locomotive.distance_m

    def speed_mps(self) -> float:
        return abs(self.locomotive.speed_mps)

    def is_brake_emergency(self) -> bool:
        return self.locomotive.is_brake_emergency()

    def is_brake_full_service(self) -> bool:
        return self.locomotive.is_brake_full_service()

    def current_signal_speed_limit_mps(self) -> float:
        return self.locomotive.allowed_max_speed_signal_mps

    def current_post_speed_limit_mps(self) -> float:
        return self.locomotive.allowed_max_speed_limit_mps

    def train_speed_limit_mps(self) -> float:
        return self.lookahead.train_speed_limit_mps()

    def is_alerter_enabled(self) -> bool:
        return self._alerter_enabled

    def alerter_sound(self) -> bool:
        return self.locomotive.alerter_sound

    def next_signal_speed_limit_mps(self, index: int) -> float:
        return self.lookahead.next_signal_speed_limit_mps(index)

    def next_signal_aspect(self, index: int) -> SignalAspect:
        return self.lookahead.next_signal_aspect(index)

    def next_signal_distance_m(self, index: int) -> float:
        return self.lookahead.next_signal_distance_m(index)

    def next_post_speed_limit_mps(self, index: int) -> float:
        return self.lookahead.next_post_speed_limit_mps(index)

    def next_post_distance_m(self, index: int) -> float:
        return self.lookahead.next_post_distance_m(index)

    def speed_curve(self, target_distance_m: float, target_speed_mps: float,
                    slope: float, delay_s: float, deceleration_mps2: float) -> float:
        return braking_curves.speed_curve(target_distance_m, target_speed_mps,
                                          slope, delay_s, deceleration_mps2)

    def distance_curve(self, current_speed_mps: float, target_speed_mps: float,
                       slope: float, delay_s: float, deceleration_mps2: float) -> float:
        return braking_curves.distance_curve(current_speed_mps, target_speed_mps,
                                             slope, delay_s, deceleration_mps2)

    # ---- TrainControlPorts: commands ----
    def set_full_brake(self) -> None:
        self.locomotive.set_full_brake()

    def set_emergency_brake(self) -> None:
        self.locomotive.set_emergency_brake()

    def set_throttle_controller(self, value: float) -> None:
        self.locomotive.set_throttle(value)

    def set_dynamic_brake_controller(self, value: float) -> None:
        self.locomotive.set_dynamic_brake(value)

    def set_pantographs_down(self) -> None:
        self.locomotive.signal_event(TrainEvent.PANTOGRAPH_1_DOWN)
        self.locomotive.signal_event(TrainEvent.PANTOGRAPH_2_DOWN)

    def set_horn(self, on: bool) -> None:
        self.locomotive.signal_event(TrainEvent.HORN_ON if on else TrainEvent.HORN_OFF)

    def set_vigilance_alarm(self, on: bool) -> None:
        self.locomotive.signal_event(
            TrainEvent.VIGILANCE_ALARM_ON if on else TrainEvent.VIGILANCE_ALARM_OFF)

    def set_vigilance_alarm_display(self, value: bool) -> None:
        self.vigilance_alarm = value

    def set_vigilance_emergency_display(self, value: bool) -> None:
        self.vigilance_emergency = value

    def set_overspeed_warning_display(self, value: bool) -> None:
        self.overspeed_warning = value

    def set_penalty_application_display(self, value: bool) -> None:
        self.penalty_application = value

    def set_current_speed_limit_mps(self, value: float) -> None:
        self.current_speed_limit_mps = value

    def set_next_speed_limit_mps(self, value: float) -> None:
        self.next_speed_limit_mps = value

    def set_next_signal_aspect(self, aspect: SignalAspect) -> None:
        self.cab_signal_aspect = aspect

    def trigger_sound(self, cue: SoundCue) -> None:
        self._handle_event(SOUND_CUE_EVENTS[cue])
