"""Train Model Backend

Minimal locomotive host for the train control system: kinematics, brake
controller, pantographs, horn and the list of signals and speed posts along
the line.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from trainControlSystem.signal_lookahead import TrainInfo, TrainObjectItem, TrainObjectType
from universal.universal import GRAVITY_MPS2, SignalAspect, TrainEvent, TravelDirection

logger = logging.getLogger(__name__)


class BrakeState(Enum):
    """Train brake controller positions."""
    RELEASE = "release"
    FULL_SERVICE = "full_service"
    EMERGENCY = "emergency"


class TrackObject:
    """Signal, speed post or end of authority at a fixed position on the line.

    Attributes:
        item_type: Kind of object.
        position_m: Position along the line in meters.
        allowed_speed_mps: Speed allowed past the object, negative if none.
        signal_aspect: Aspect shown, signals only.
    """

    def __init__(self, item_type: TrainObjectType, position_m: float,
                 allowed_speed_mps: float = -1.0,
                 signal_aspect: SignalAspect = SignalAspect.NONE) -> None:
        self.item_type = item_type
        self.position_m = float(position_m)
        self.allowed_speed_mps = float(allowed_speed_mps)
        self.signal_aspect = signal_aspect


class LocomotiveModel:
    """Kinematic locomotive driven by the simulation clock.

    Attributes:
        speed_mps: Current speed (magnitude) in m/s.
        position_m: Position along the line in meters.
        distance_m: Total distance travelled in meters.
        direction: Direction of travel.
        throttle: Throttle setting, 0..1.
        brake_state: Train brake controller position.
        alerter_sound: True while the vigilance alarm sounds.
        horn: True while the horn sounds.
        pantographs_up: State of pantographs 1 and 2.
        allowed_max_speed_signal_mps: Limit of the last signal passed, -1 if none.
        allowed_max_speed_limit_mps: Limit of the last speed post passed, -1 if none.
    """

    # Performance limits
    MAX_ACCEL = 0.8  # m/s^2 traction-limited accel
    MAX_DECEL = -1.2  # m/s^2 service-brake
    MAX_EBRAKE = -2.73  # m/s^2 emergency-brake
    DT_MAX = 0.25  # Clamp large time steps

    def __init__(self, max_speed_mps: float = 33.0,
                 track_objects: Optional[List[TrackObject]] = None,
                 emergency_causes_throttle_down: bool = True,
                 emergency_engages_horn: bool = False) -> None:
        """Initialize a stationary locomotive at position 0.

        Args:
            max_speed_mps: Static speed limit of the train.
            track_objects: Signals and speed posts along the line.
            emergency_causes_throttle_down: Penalty brake zeroes the throttle.
            emergency_engages_horn: Penalty brake sounds the horn.
        """
        self.max_speed_mps = max_speed_mps
        self.track_objects: List[TrackObject] = sorted(
            track_objects or [], key=lambda obj: obj.position_m)
        self.emergency_causes_throttle_down = emergency_causes_throttle_down
        self.emergency_engages_horn = emergency_engages_horn

        # Dynamics state
        self.speed_mps: float = 0.0
        self.acceleration: float = 0.0
        self.position_m: float = 0.0
        self.distance_m: float = 0.0
        self.grade_percent: float = 0.0
        self.direction = TravelDirection.FORWARD

        # Controls
        self.throttle: float = 0.0
        self.dynamic_brake: float = 0.0
        self.brake_state = BrakeState.RELEASE
        self.alerter_sound = False
        self.horn = False
        self.pantographs_up = [True, True]
        self.cab_view = True

        self.allowed_max_speed_signal_mps: float = -1.0
        self.allowed_max_speed_limit_mps: float = -1.0

        self.sim_time_s: float = 0.0
        self.events: List[TrainEvent] = []

        # Observers
        self._listeners: List[Callable[[], None]] = []
        self._last_clock_time: Optional[datetime] = None

    def on_clock_tick(self, now: datetime) -> None:
        """Clock listener callback for time synchronization.

        Args:
            now: Current simulation time from global clock.
        """
        if self._last_clock_time is None:
            self._last_clock_time = now
            return

        dt_s = (now - self._last_clock_time).total_seconds()
        self._last_clock_time = now
        self.step(dt_s)
        self._notify_listeners()

    def add_listener(self, callback: Callable[[], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def _notify_listeners(self) -> None:
        """Notify all registered listeners of state changes."""
        for cb in list(self._listeners):
            try:
                cb()
            except Exception:
                logger.exception("Listener raised an exception")

    # ---- queries used by the train control system ----
    def clock_time(self) -> float:
        return self.sim_time_s

    def is_brake_emergency(self) -> bool:
        return self.brake_state == BrakeState.EMERGENCY

    def is_brake_full_service(self) -> bool:
        return self.brake_state == BrakeState.FULL_SERVICE

    def in_cab_view(self) -> bool:
        return self.cab_view

    def get_train_info(self) -> TrainInfo:
        """Return the train's limit and the objects ahead in each direction."""
        forward = [
            TrainObjectItem(obj.item_type, obj.allowed_speed_mps,
                            obj.position_m - self.position_m, obj.signal_aspect)
            for obj in self.track_objects if obj.position_m > self.position_m
        ]
        backward = [
            TrainObjectItem(obj.item_type, obj.allowed_speed_mps,
                            self.position_m - obj.position_m, obj.signal_aspect)
            for obj in reversed(self.track_objects) if obj.position_m < self.position_m
        ]
        return TrainInfo(self.max_speed_mps, forward, backward)

    # ---- commands ----
    def set_full_brake(self) -> None:
        if self.brake_state != BrakeState.EMERGENCY:
            self.brake_state = BrakeState.FULL_SERVICE

    def set_emergency_brake(self) -> None:
        if self.brake_state != BrakeState.EMERGENCY:
            logger.warning("EMERGENCY BRAKE applied at %.1f m/s", self.speed_mps)
        self.brake_state = BrakeState.EMERGENCY

    def release_brakes(self) -> None:
        self.brake_state = BrakeState.RELEASE

    def set_throttle(self, value: float) -> None:
        self.throttle = max(0.0, min(1.0, float(value)))

    def set_dynamic_brake(self, value: float) -> None:
        self.dynamic_brake = max(0.0, min(1.0, float(value)))

    def signal_event(self, event: TrainEvent) -> None:
        """Record an event and update the devices it drives."""
        self.events.append(event)
        if event == TrainEvent.HORN_ON:
            self.horn = True
        elif event == TrainEvent.HORN_OFF:
            self.horn = False
        elif event == TrainEvent.VIGILANCE_ALARM_ON:
            self.alerter_sound = True
        elif event == TrainEvent.VIGILANCE_ALARM_OFF:
            self.alerter_sound = False
        elif event == TrainEvent.PANTOGRAPH_1_DOWN:
            self.pantographs_up[0] = False
        elif event == TrainEvent.PANTOGRAPH_2_DOWN:
            self.pantographs_up[1] = False

    # ---- physics ----
    def step(self, dt: float) -> None:
        """Advance by dt seconds, in sub-steps of at most DT_MAX."""
        remaining = max(0.0, float(dt))
        while remaining > 1e-6:
            sub = min(self.DT_MAX, remaining)
            self._step_dt(sub)
            remaining -= sub

    def _step_dt(self, dt: float) -> None:
        """Advance physics simulation by dt seconds.

        Args:
            dt: Time step in seconds.
        """
        if dt <= 0.0:
            return

        powered = any(self.pantographs_up) and self.brake_state == BrakeState.RELEASE
        a_traction = self.throttle * self.MAX_ACCEL if powered else 0.0
        a_dynamic = -self.dynamic_brake * abs(self.MAX_DECEL)
        a_grade = -GRAVITY_MPS2 * (self.grade_percent / 100.0)

        if self.brake_state == BrakeState.EMERGENCY:
            a_brake = self.MAX_EBRAKE
        elif self.brake_state == BrakeState.FULL_SERVICE:
            a_brake = self.MAX_DECEL
        else:
            a_brake = 0.0

        a_target = a_traction + a_dynamic + a_grade + a_brake

        v_old = self.speed_mps
        v_new = v_old + a_target * dt
        if v_new < 0.0:
            v_new = 0.0
            a_target = 0.0
        v_new = min(v_new, self.max_speed_mps * 1.5)

        travelled = 0.5 * (v_old + v_new) * dt
        old_position = self.position_m
        if self.direction == TravelDirection.FORWARD:
            self.position_m += travelled
        else:
            self.position_m -= travelled
        self.distance_m += travelled
        self.speed_mps = v_new
        self.acceleration = a_target
        self.sim_time_s += dt

        self._pass_track_objects(old_position, self.position_m)

    def _pass_track_objects(self, old_position: float, new_position: float) -> None:
        low, high = sorted((old_position, new_position))
        passed = [obj for obj in self.track_objects if low < obj.position_m <= high]
        if new_position < old_position:
            passed.reverse()
        for obj in passed:
            if obj.item_type == TrainObjectType.SPEEDPOST:
                self.allowed_max_speed_limit_mps = obj.allowed_speed_mps
            elif obj.item_type == TrainObjectType.SIGNAL:
                self.allowed_max_speed_signal_mps = obj.allowed_speed_mps
            logger.debug("Passed %s at %.1f m", obj.item_type.value, obj.position_m)

    def report_state(self) -> Dict[str, object]:
        """Get locomotive state as dictionary."""
        return {
            "speed_mps": self.speed_mps,
            "acceleration": self.acceleration,
            "position_m": self.position_m,
            "distance_m": self.distance_m,
            "direction": self.direction.value,
            "throttle": self.throttle,
            "brake_state": self.brake_state.value,
            "alerter_sound": self.alerter_sound,
            "horn": self.horn,
            "pantographs_up": list(self.pantographs_up),
            "signal_limit_mps": self.allowed_max_speed_signal_mps,
            "post_limit_mps": self.allowed_max_speed_limit_mps,
            "clock_time_s": self.sim_time_s,
        }
