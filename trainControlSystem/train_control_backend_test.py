"""
Train Control Backend Testing

Backend wiring against the locomotive model: lookahead, display state,
alerter input, sound cues, cloning and alternative systems.
"""
import pytest

from trainControlSystem.monitoring_device import MonitorKind, MonitoringDevice
from trainControlSystem.ports import SoundCue
from trainControlSystem.signal_lookahead import TrainObjectType
from trainControlSystem.train_control_backend import (
    TrainControlSettings,
    TrainControlSystemBackend,
)
from trainControlSystem.train_control_system import (
    MonitoringTrainControlSystem,
    TCSEvent,
    TrainControlSystem,
)
from trainModel.train_model_backend import BrakeState, LocomotiveModel, TrackObject
from universal.universal import SignalAspect, TrainEvent


@pytest.fixture
def locomotive():
    return LocomotiveModel(
        max_speed_mps=30.0,
        track_objects=[
            TrackObject(TrainObjectType.SPEEDPOST, 200.0, 25.0),
            TrackObject(TrainObjectType.SIGNAL, 500.0, 20.0, SignalAspect.APPROACH_1),
            TrackObject(TrainObjectType.SIGNAL, 1200.0, -1.0, SignalAspect.CLEAR_2),
        ],
    )


@pytest.fixture
def devices():
    return {
        MonitorKind.VIGILANCE: MonitoringDevice(alarm_time_s=60.0, monitor_time_s=66.0,
                                                penalty_time_s=5.0,
                                                applies_emergency_brake=True),
        MonitorKind.OVERSPEED: MonitoringDevice(trigger_on_overspeed_mps=35.0,
                                                alarm_time_s=5.0),
    }


@pytest.fixture
def backend(locomotive, devices):
    tcs = TrainControlSystemBackend(locomotive, devices)
    tcs.initialize()
    return tcs


def run_for(locomotive, backend, seconds, dt=0.5):
    remaining = seconds
    while remaining > 1e-6:
        locomotive.step(dt)
        backend.update()
        remaining -= dt


class RecordingSystem(TrainControlSystem):
    """Alternative system that only plays sound cues."""

    def __init__(self):
        super().__init__()
        self.events = []
        self.updates = 0
        self.emergencies = 0
        self.distances = []
        self.post_limits = []

    def initialize(self):
        self.activated = True
        self.ports.trigger_sound(SoundCue.SYSTEM_ACTIVATE)

    def update(self):
        self.updates += 1
        self.ports.set_next_signal_aspect(self.ports.next_signal_aspect(1))
        self.distances.append(self.ports.distance_m())
        self.post_limits.append(self.ports.current_post_speed_limit_mps())
        self.ports.set_dynamic_brake_controller(0.5)

    def handle_event(self, event, message=""):
        self.events.append(event)
        self.ports.trigger_sound(SoundCue.INFO1)

    def set_emergency(self):
        self.emergencies += 1
        self.ports.trigger_sound(SoundCue.PENALTY1)


def test_update_before_initialize_does_nothing(locomotive, devices):
    tcs = TrainControlSystemBackend(locomotive, devices)
    tcs.update()
    assert tcs.system is None
    assert tcs.cab_signal_aspect == SignalAspect.NONE


def test_set_emergency_without_system_uses_locomotive(locomotive):
    tcs = TrainControlSystemBackend(locomotive)
    tcs.set_emergency()
    assert locomotive.brake_state == BrakeState.EMERGENCY


def test_initialize_builds_monitoring_system(backend, devices):
    assert backend.activated
    assert isinstance(backend.system, MonitoringTrainControlSystem)
    assert backend.system.vigilance_monitor is devices[MonitorKind.VIGILANCE]
    assert backend.system.emergency_stop_monitor is None
    assert backend.system.emergency_causes_throttle_down


def test_display_state_from_lookahead(backend, locomotive):
    backend.update()
    assert backend.cab_signal_aspect == SignalAspect.APPROACH_1
    assert backend.next_speed_limit_mps == 20.0
    assert backend.current_speed_limit_mps == 30.0
    assert backend.next_signal_distance_m(0) == pytest.approx(500.0)
    assert backend.next_post_speed_limit_mps(0) == 25.0


def test_lookahead_refreshed_every_tick(backend, locomotive):
    backend.update()
    assert backend.next_signal_distance_m(0) == pytest.approx(500.0)

    locomotive.position_m = 100.0
    backend.update()
    assert backend.next_signal_distance_m(0) == pytest.approx(400.0)

    locomotive.position_m = 600.0
    locomotive.allowed_max_speed_signal_mps = 20.0
    backend.update()
    assert backend.cab_signal_aspect == SignalAspect.CLEAR_2
    assert backend.current_speed_limit_mps == 20.0
    assert backend.next_speed_limit_mps == 30.0


def test_speed_is_absolute(backend, locomotive):
    locomotive.speed_mps = -12.0
    assert backend.speed_mps() == 12.0


def test_vigilance_penalty_stops_locomotive(backend, locomotive):
    locomotive.speed_mps = 15.0
    run_for(locomotive, backend, 59.5)
    assert not backend.vigilance_alarm

    run_for(locomotive, backend, 1.0)
    assert backend.vigilance_alarm
    assert locomotive.alerter_sound
    assert TrainEvent.VIGILANCE_ALARM_ON in locomotive.events

    run_for(locomotive, backend, 6.0)
    assert backend.vigilance_emergency
    assert backend.penalty_application
    assert locomotive.brake_state == BrakeState.EMERGENCY
    assert locomotive.throttle == 0.0
    assert not locomotive.alerter_sound

    run_for(locomotive, backend, 10.0)
    assert locomotive.speed_mps == 0.0
    assert not backend.vigilance_emergency
    assert not backend.vigilance_alarm


def test_alerter_press_keeps_alarm_away(backend, locomotive):
    locomotive.speed_mps = 15.0
    for _ in range(4):
        run_for(locomotive, backend, 50.0)
        backend.alerter_pressed(True)
        backend.alerter_pressed(False)
    assert not backend.vigilance_alarm
    assert locomotive.brake_state == BrakeState.RELEASE
    assert not backend.alerter_button_pressed


def test_alerter_reset_silences_alarm(backend, locomotive):
    locomotive.speed_mps = 15.0
    run_for(locomotive, backend, 61.0)
    assert locomotive.alerter_sound

    backend.alerter_reset()
    assert not locomotive.alerter_sound
    run_for(locomotive, backend, 1.0)
    assert not backend.vigilance_alarm


def test_overspeed_penalty_applies_full_brake(locomotive, devices):
    tcs = TrainControlSystemBackend(locomotive, {MonitorKind.OVERSPEED: devices[MonitorKind.OVERSPEED]})
    tcs.initialize()
    locomotive.max_speed_mps = 50.0
    locomotive.speed_mps = 40.0
    tcs.update()
    assert tcs.overspeed_warning

    run_for(locomotive, tcs, 5.0, dt=0.25)
    assert locomotive.brake_state == BrakeState.FULL_SERVICE
    assert tcs.penalty_application


def test_alerter_disabled_outside_cab(locomotive, devices):
    settings = TrainControlSettings(alerter=True, alerter_disable_external=True)
    tcs = TrainControlSystemBackend(locomotive, devices, settings)
    tcs.initialize()

    tcs.update()
    assert tcs.is_alerter_enabled()

    locomotive.cab_view = False
    tcs.update()
    assert not tcs.is_alerter_enabled()


def test_emergency_cuts_power_lowers_pantographs(locomotive):
    stop = MonitoringDevice(applies_emergency_brake=True, emergency_cuts_power=True)
    locomotive.emergency_engages_horn = True
    tcs = TrainControlSystemBackend(locomotive, {MonitorKind.EMERGENCY_STOP: stop})
    tcs.initialize()

    tcs.set_emergency()
    assert locomotive.pantographs_up == [False, False]
    assert locomotive.horn
    assert locomotive.brake_state == BrakeState.EMERGENCY


def test_clone_copies_configuration_not_state(backend, locomotive):
    backend.update()
    other = LocomotiveModel(max_speed_mps=20.0)
    copy = backend.clone(other)

    assert copy.locomotive is other
    assert copy.system is None
    assert copy.devices == backend.devices
    for kind, device in copy.devices.items():
        assert device is not backend.devices[kind]
    assert copy.settings is not backend.settings
    assert copy.cab_signal_aspect == SignalAspect.NONE

    copy.initialize()
    assert copy.system is not backend.system
    assert copy.system.vigilance_alarm_timer is not backend.system.vigilance_alarm_timer


def test_alternative_system_and_sound_cues(locomotive):
    heard = []
    tcs = TrainControlSystemBackend(locomotive, system_factory=lambda _b: RecordingSystem())
    tcs.add_event_handler(lambda event, system: heard.append((event, system)))
    tcs.initialize()

    assert heard == [(TrainEvent.TCS_ACTIVATE, tcs.system)]

    tcs.update()
    assert tcs.system.updates == 1
    assert tcs.cab_signal_aspect == SignalAspect.CLEAR_2

    tcs.alerter_pressed(True)
    tcs.alerter_reset()
    assert tcs.system.events == [TCSEvent.ALERTER_PRESSED, TCSEvent.ALERTER_RESET]

    tcs.set_emergency()
    assert tcs.system.emergencies == 1
    assert locomotive.brake_state == BrakeState.RELEASE
    assert [event for event, _ in heard] == [
        TrainEvent.TCS_ACTIVATE, TrainEvent.TCS_INFO1,
        TrainEvent.TCS_INFO1, TrainEvent.TCS_PENALTY1,
    ]


def test_odometer_post_limit_and_dynamic_brake_ports(locomotive):
    tcs = TrainControlSystemBackend(locomotive, system_factory=lambda _b: RecordingSystem())
    tcs.initialize()

    tcs.update()
    assert tcs.system.distances == [0.0]
    assert tcs.system.post_limits == [-1.0]
    assert locomotive.dynamic_brake == 0.5

    locomotive.set_dynamic_brake(0.0)
    locomotive.speed_mps = 10.0
    locomotive.step(30.0)
    tcs.update()
    assert tcs.system.distances[-1] == pytest.approx(300.0)
    assert tcs.system.post_limits[-1] == locomotive.allowed_max_speed_limit_mps == 25.0
    assert locomotive.dynamic_brake == 0.5


def test_failing_event_handler_is_skipped(locomotive):
    heard = []

    def broken(event, system):
        raise RuntimeError("sound device missing")

    tcs = TrainControlSystemBackend(locomotive, system_factory=lambda _b: RecordingSystem())
    tcs.add_event_handler(broken)
    tcs.add_event_handler(lambda event, system: heard.append(event))
    tcs.initialize()
    assert heard == [TrainEvent.TCS_ACTIVATE]

    tcs.remove_event_handler(broken)
    tcs.trigger_sound(SoundCue.INFO2)
    assert heard == [TrainEvent.TCS_ACTIVATE, TrainEvent.TCS_INFO2]


def test_braking_curves_exposed_as_ports(backend):
    distance = backend.distance_curve(20.0, 0.0, 0.0, 0.0, 1.0)
    assert distance == pytest.approx(200.0)
    assert backend.speed_curve(distance, 0.0, 0.0, 0.0, 1.0) == pytest.approx(20.0)


def test_report_state(backend):
    backend.update()
    state = backend.report_state()
    assert state["activated"] is True
    assert state["cab_signal_aspect"] == "approach_1"
    assert state["penalty_application"] is False
