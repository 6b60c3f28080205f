"""Train control systems.

``TrainControlSystem`` is the interface every train control system
implements: it is driven once per tick by ``update()`` and talks to the
locomotive only through ``TrainControlPorts``.

``MonitoringTrainControlSystem`` is the built-in implementation. It supervises
driver vigilance and overspeed from the locomotive's monitoring devices and
applies the penalty brake when the driver does not respond:

    vigilance:  idle -> alarm -> emergency (penalty) -> idle
    overspeed:  idle -> warning -> alarm (penalty) -> idle
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from trainControlSystem.monitoring_device import MonitoringDevice
from trainControlSystem.ports import TrainControlPorts
from trainControlSystem.timer import Timer

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

STANDSTILL_SPEED_MPS = 0.1


class TCSEvent(Enum):
    """Driver inputs sent to a train control system."""
    ALERTER_PRESSED = "alerter_pressed"
    ALERTER_RELEASED = "alerter_released"
    ALERTER_RESET = "alerter_reset"


class TrainControlSystem(ABC):
    """Base class for train control systems.

    Attributes:
        ports: Host capabilities, bound before ``initialize()``.
        activated: True once ``initialize()`` has run.
    """

    def __init__(self) -> None:
        self.ports: Optional[TrainControlPorts] = None
        self.activated = False

    def attach(self, ports: TrainControlPorts) -> None:
        self.ports = ports

    def new_timer(self) -> Timer:
        """Create a timer running on the host's simulation clock."""
        return Timer(self.ports.clock_time)

    @abstractmethod
    def initialize(self) -> None:
        """Called once after the ports are attached."""

    @abstractmethod
    def update(self) -> None:
        """Called once per simulation tick."""

    @abstractmethod
    def handle_event(self, event: TCSEvent, message: str = "") -> None:
        """Called on driver input."""

    @abstractmethod
    def set_emergency(self) -> None:
        """Called when the host requests an emergency stop."""


class MonitoringTrainControlSystem(TrainControlSystem):
    """Vigilance and overspeed supervision from monitoring devices.

    Attributes:
        vigilance_monitor: Vigilance device, None if not fitted.
        overspeed_monitor: Overspeed device, None if not fitted.
        emergency_stop_monitor: Emergency stop device, None if not fitted.
        aws_monitor: AWS device, None if not fitted. Carried for alternative
            systems only, not supervised here.
        emergency_causes_throttle_down: Zero the throttle on emergency.
        emergency_engages_horn: Sound the horn on emergency.
    """

    def __init__(self,
                 vigilance_monitor: Optional[MonitoringDevice] = None,
                 overspeed_monitor: Optional[MonitoringDevice] = None,
                 emergency_stop_monitor: Optional[MonitoringDevice] = None,
                 aws_monitor: Optional[MonitoringDevice] = None,
                 emergency_causes_throttle_down: bool = False,
                 emergency_engages_horn: bool = False) -> None:
        super().__init__()
        self.vigilance_monitor = vigilance_monitor
        self.overspeed_monitor = overspeed_monitor
        self.emergency_stop_monitor = emergency_stop_monitor
        self.aws_monitor = aws_monitor
        self.emergency_causes_throttle_down = emergency_causes_throttle_down
        self.emergency_engages_horn = emergency_engages_horn

        self.vigilance_alarm = False
        self.vigilance_emergency = False
        self.overspeed_warning = False
        self.overspeed_alarm = False
        self.current_speed_limit_mps = 0.0

        self.vigilance_alarm_timer: Optional[Timer] = None
        self.vigilance_emergency_timer: Optional[Timer] = None
        self.vigilance_penalty_timer: Optional[Timer] = None
        self.overspeed_alarm_timer: Optional[Timer] = None
        self.overspeed_penalty_timer: Optional[Timer] = None

    def initialize(self) -> None:
        self.vigilance_alarm_timer = self.new_timer()
        self.vigilance_emergency_timer = self.new_timer()
        self.vigilance_penalty_timer = self.new_timer()
        self.overspeed_alarm_timer = self.new_timer()
        self.overspeed_penalty_timer = self.new_timer()

        if self.vigilance_monitor is not None:
            self.vigilance_alarm_timer.setup(self.vigilance_monitor.alarm_time_s)
            self.vigilance_emergency_timer.setup(
                self.vigilance_monitor.vigilance_alarm_timeout_s)
            self.vigilance_penalty_timer.setup(self.vigilance_monitor.penalty_time_s)
            self.vigilance_alarm_timer.start()
        if self.overspeed_monitor is not None:
            self.overspeed_alarm_timer.setup(self.overspeed_monitor.overspeed_alarm_time_s)
            self.overspeed_penalty_timer.setup(self.overspeed_monitor.penalty_time_s)

        self.activated = True
        logger.info("Train control system activated (vigilance=%s, overspeed=%s)",
                    self.vigilance_monitor is not None,
                    self.overspeed_monitor is not None)

    def update(self) -> None:
        ports = self.ports
        ports.set_next_signal_aspect(ports.next_signal_aspect(0))

        train_limit = ports.train_speed_limit_mps()
        signal_limit = ports.current_signal_speed_limit_mps()
        self.current_speed_limit_mps = signal_limit if signal_limit >= 0 else train_limit
        if self.current_speed_limit_mps > train_limit:
            self.current_speed_limit_mps = train_limit
        ports.set_current_speed_limit_mps(self.current_speed_limit_mps)

        next_limit = ports.next_signal_speed_limit_mps(0)
        ports.set_next_speed_limit_mps(
            next_limit if 0 <= next_limit < train_limit else train_limit)

        if self.vigilance_monitor is not None:
            self._update_vigilance()
        if self.overspeed_monitor is not None:
            self._update_speed_control()

        if not ports.is_brake_emergency() and not ports.is_brake_full_service():
            ports.set_penalty_application_display(False)

    def handle_event(self, event: TCSEvent, message: str = "") -> None:
        if event not in (TCSEvent.ALERTER_PRESSED,
                         TCSEvent.ALERTER_RELEASED,
                         TCSEvent.ALERTER_RESET):
            return
        if not self.activated or self.vigilance_emergency:
            return

        if self.vigilance_monitor is not None:
            self.vigilance_alarm_timer.start()
            self.vigilance_emergency_timer.stop()
            self.vigilance_alarm = self.vigilance_alarm_timer.triggered
            if self.ports.alerter_sound():
                self.ports.set_vigilance_alarm(False)

        if self.overspeed_monitor is not None:
            if self.overspeed_warning and self.overspeed_monitor.reset_on_reset_button:
                self.overspeed_alarm_timer.start()

    def set_emergency(self) -> None:
        ports = self.ports
        ports.set_penalty_application_display(True)
        monitor = self.emergency_stop_monitor
        if monitor is not None and not monitor.applies_emergency_brake:
            if ports.is_brake_full_service() or ports.is_brake_emergency():
                return
            ports.set_full_brake()
            logger.info("Penalty: full service brake applied")
        else:
            if ports.is_brake_emergency():
                return
            ports.set_emergency_brake()
            logger.info("Penalty: emergency brake applied")

        if self.emergency_causes_throttle_down:
            ports.set_throttle_controller(0.0)
        if monitor is not None and monitor.emergency_cuts_power:
            ports.set_pantographs_down()
        if self.emergency_engages_horn:
            ports.set_horn(True)

    def _apply_penalty(self, monitor: MonitoringDevice) -> None:
        self.ports.set_penalty_application_display(True)
        if monitor.applies_emergency_brake:
            self.set_emergency()
        elif monitor.applies_full_brake:
            self.ports.set_full_brake()

    def _update_vigilance(self) -> None:
        ports = self.ports
        monitor = self.vigilance_monitor
        speed = ports.speed_mps()

        if ports.alerter_sound() and not ports.is_alerter_enabled():
            self.handle_event(TCSEvent.ALERTER_PRESSED)

        alarm = self.vigilance_alarm_timer.triggered
        if alarm and not self.vigilance_alarm:
            logger.info("Vigilance alarm raised")
        self.vigilance_alarm = alarm
        self.vigilance_emergency = self.vigilance_emergency_timer.triggered

        if self.vigilance_emergency:
            self._apply_penalty(monitor)

            if not self.vigilance_penalty_timer.started:
                self.vigilance_penalty_timer.start()
                logger.info("Vigilance emergency: penalty brake")
            if speed < STANDSTILL_SPEED_MPS and self.vigilance_penalty_timer.triggered:
                self.vigilance_emergency_timer.stop()
                self.vigilance_penalty_timer.stop()
                self.vigilance_emergency = False
                logger.info("Vigilance penalty released")
            else:
                if ports.alerter_sound():
                    ports.set_vigilance_alarm(False)
                self._publish_vigilance()
                return

        if self.vigilance_alarm:
            if (monitor.reset_on_zero_speed and speed < STANDSTILL_SPEED_MPS
                    or speed <= monitor.reset_level_mps):
                self.handle_event(TCSEvent.ALERTER_PRESSED)
                self._publish_vigilance()
                return
            if not self.vigilance_emergency_timer.started:
                self.vigilance_emergency_timer.start()
            if not ports.alerter_sound():
                ports.set_vigilance_alarm(True)
        else:
            self.vigilance_emergency_timer.stop()
            if self.vigilance_penalty_timer.triggered:
                self.vigilance_penalty_timer.stop()

        self._publish_vigilance()

    def _publish_vigilance(self) -> None:
        self.ports.set_vigilance_alarm_display(self.vigilance_alarm)
        self.ports.set_vigilance_emergency_display(self.vigilance_emergency)

    def _update_speed_control(self) -> None:
        ports = self.ports
        monitor = self.overspeed_monitor
        speed = ports.speed_mps()

        # Both absolute triggers are used independently
        overspeed_warning = False
        if monitor.trigger_on_overspeed_mps > 0:
            overspeed_warning |= speed > monitor.trigger_on_overspeed_mps
        if monitor.critical_level_mps > 0:
            overspeed_warning |= speed > monitor.critical_level_mps
        if monitor.trigger_on_track_overspeed:
            overspeed_warning |= (speed > self.current_speed_limit_mps
                                  + monitor.trigger_on_track_overspeed_margin_mps)

        if overspeed_warning and not self.overspeed_warning:
            logger.info("Overspeed warning at %.1f m/s", speed)
        self.overspeed_warning = overspeed_warning
        ports.set_overspeed_warning_display(overspeed_warning)

        self.overspeed_alarm = self.overspeed_alarm_timer.triggered

        if self.overspeed_alarm and ports.is_alerter_enabled():
            self._apply_penalty(monitor)

            if not self.overspeed_penalty_timer.started:
                self.overspeed_penalty_timer.start()
                logger.info("Overspeed alarm: penalty brake")

            if speed < STANDSTILL_SPEED_MPS and self.overspeed_penalty_timer.triggered:
                self.overspeed_alarm_timer.stop()
                self.overspeed_penalty_timer.stop()
                logger.info("Overspeed penalty released")
            return

        if self.overspeed_warning:
            if not self.overspeed_alarm_timer.started:
                self.overspeed_alarm_timer.start()
        else:
            self.overspeed_alarm_timer.stop()
            if self.overspeed_penalty_timer.triggered:
                self.overspeed_penalty_timer.stop()
