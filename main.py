import sys
import os
import argparse
import logging
logging.basicConfig(level=logging.INFO)

# Set up sys.path for module imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# Train Control System import
from trainControlSystem.monitoring_device import load_monitoring_devices
from trainControlSystem.signal_lookahead import TrainObjectType
from trainControlSystem.train_control_backend import TrainControlSystemBackend

# Train Model import
from trainModel.train_model_backend import LocomotiveModel, TrackObject

# Universal import
from universal.universal import SignalAspect
from universal.global_clock import GlobalClock

logger = logging.getLogger("main")

DEFAULT_CONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                              'trainControlSystem', 'default_monitors.csv')


def build_line():
    """Signals and speed posts along the demo line."""
    return [
        TrackObject(TrainObjectType.SPEEDPOST, 400.0, 25.0),
        TrackObject(TrainObjectType.SIGNAL, 1000.0, 20.0, SignalAspect.APPROACH_1),
        TrackObject(TrainObjectType.SPEEDPOST, 1800.0, 33.0),
        TrackObject(TrainObjectType.SIGNAL, 2500.0, -1.0, SignalAspect.CLEAR_2),
        TrackObject(TrainObjectType.AUTHORITY, 6000.0),
    ]


def run_scenario(scenario, duration_s, speed_mps, config_file, tick_s=0.5):
    """Run a headless scenario and return the final display state."""
    devices = load_monitoring_devices(config_file)
    locomotive = LocomotiveModel(max_speed_mps=40.0, track_objects=build_line())
    backend = TrainControlSystemBackend(locomotive, devices)

    locomotive.speed_mps = speed_mps
    if scenario == "overspeed":
        # Hold power so the train stays above the trigger until the penalty
        locomotive.set_throttle(0.3)

    sim_clock = GlobalClock(tick_interval=tick_s)
    sim_clock.register_listener(locomotive.on_clock_tick)
    sim_clock.register_listener(backend.on_clock_tick)

    backend.initialize()
    last_state = backend.report_state()
    logger.info("t=%6.1fs %s", locomotive.clock_time(), last_state)

    ticks = int(round(duration_s / tick_s))
    for _ in range(ticks):
        sim_clock.tick()
        state = backend.report_state()
        if state != last_state:
            logger.info("t=%6.1fs speed=%5.1f m/s %s", locomotive.clock_time(),
                        locomotive.speed_mps, state)
            last_state = state

    logger.info("Finished at %s: %s", sim_clock.get_time_string(), locomotive.report_state())
    return last_state


if __name__ == "__main__":
    # Parse command-line arguments
    parser = argparse.ArgumentParser(description="Train Control System scenario runner")
    parser.add_argument("--scenario", choices=["vigilance", "overspeed"], default="vigilance",
                        help="Scenario to run (default: vigilance)")
    parser.add_argument("--duration", type=float, default=120.0,
                        help="Simulated seconds to run (default: 120)")
    parser.add_argument("--speed", type=float, default=20.0,
                        help="Initial train speed in m/s (default: 20)")
    parser.add_argument("--config", type=str, default=DEFAULT_CONFIG,
                        help="Monitor configuration CSV (default: trainControlSystem/default_monitors.csv)")
    args = parser.parse_args()

    run_scenario(args.scenario, args.duration, args.speed, args.config)
