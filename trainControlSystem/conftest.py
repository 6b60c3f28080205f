import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from trainControlSystem import braking_curves
from trainControlSystem.ports import TrainControlPorts
from universal.universal import SignalAspect


class FakePorts(TrainControlPorts):
    """In-memory host: settable queries, recorded commands."""

    def __init__(self) -> None:
        self.now = 0.0
        self.speed = 0.0
        self.brake = "release"
        self.signal_limit = -1.0
        self.post_limit = -1.0
        self.train_limit = 40.0
        self.alerter_enabled = True
        self.sounding = False
        self.signal_limits = [-1.0]
        self.signal_aspects = [SignalAspect.NONE]
        self.calls = []
        self.display = {
            "vigilance_alarm": False,
            "vigilance_emergency": False,
            "overspeed_warning": False,
            "penalty_application": False,
            "current_speed_limit": None,
            "next_speed_limit": None,
            "next_signal_aspect": None,
        }

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    # queries
    def clock_time(self):
        return self.now

    def distance_m(self):
        return 0.0

    def speed_mps(self):
        return self.speed

    def is_brake_emergency(self):
        return self.brake == "emergency"

    def is_brake_full_service(self):
        return self.brake == "full_service"

    def current_signal_speed_limit_mps(self):
        return self.signal_limit

    def current_post_speed_limit_mps(self):
        return self.post_limit

    def train_speed_limit_mps(self):
        return self.train_limit

    def is_alerter_enabled(self):
        return self.alerter_enabled

    def alerter_sound(self):
        return self.sounding

    def next_signal_speed_limit_mps(self, index):
        return self.signal_limits[min(max(index, 0), len(self.signal_limits) - 1)]

    def next_signal_aspect(self, index):
        return self.signal_aspects[min(max(index, 0), len(self.signal_aspects) - 1)]

    def next_signal_distance_m(self, index):
        return float("inf")

    def next_post_speed_limit_mps(self, index):
        return -1.0

    def next_post_distance_m(self, index):
        return float("inf")

    def speed_curve(self, *args):
        return braking_curves.speed_curve(*args)

    def distance_curve(self, *args):
        return braking_curves.distance_curve(*args)

    # commands
    def set_full_brake(self):
        self.calls.append(("set_full_brake",))
        if self.brake != "emergency":
            self.brake = "full_service"

    def set_emergency_brake(self):
        self.calls.append(("set_emergency_brake",))
        self.brake = "emergency"

    def set_throttle_controller(self, value):
        self.calls.append(("set_throttle_controller", value))

    def set_dynamic_brake_controller(self, value):
        self.calls.append(("set_dynamic_brake_controller", value))

    def set_pantographs_down(self):
        self.calls.append(("set_pantographs_down",))

    def set_horn(self, on):
        self.calls.append(("set_horn", on))

    def set_vigilance_alarm(self, on):
        self.calls.append(("set_vigilance_alarm", on))
        self.sounding = on

    def set_vigilance_alarm_display(self, value):
        self.display["vigilance_alarm"] = value

    def set_vigilance_emergency_display(self, value):
        self.display["vigilance_emergency"] = value

    def set_overspeed_warning_display(self, value):
        self.display["overspeed_warning"] = value

    def set_penalty_application_display(self, value):
        self.display["penalty_application"] = value

    def set_current_speed_limit_mps(self, value):
        self.display["current_speed_limit"] = value

    def set_next_speed_limit_mps(self, value):
        self.display["next_speed_limit"] = value

    def set_next_signal_aspect(self, aspect):
        self.display["next_signal_aspect"] = aspect

    def trigger_sound(self, cue):
        self.calls.append(("trigger_sound", cue))


@pytest.fixture
def ports():
    return FakePorts()
