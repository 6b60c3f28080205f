"""Braking curve math.

Pure functions giving the permitted approach speed to a target, or the
distance needed to reach a target speed, for a train that keeps its speed for
a reaction delay and then brakes at constant deceleration. Slope is a
fraction (0.01 = 1 % falling grade), and reduces the effective deceleration
by its gravity component.

A grade-adjusted deceleration of zero or less means the train cannot slow
down. This is a configuration problem, not a runtime error, so both functions
return a saturated value instead of raising:

* ``speed_curve`` returns the target speed (never permit more than the target);
* ``distance_curve`` returns ``inf`` when a speed reduction is required.
"""
import logging
import math

from universal.universal import GRAVITY_MPS2

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def speed_curve(target_distance_m: float, target_speed_mps: float, slope: float,
                delay_s: float, deceleration_mps2: float) -> float:
    """Highest current speed that still reaches the target speed at the target distance.

    Args:
        target_distance_m: Distance to the target in meters.
        target_speed_mps: Speed to be reached at the target, negative means 0.
        slope: Track grade as a fraction, positive downhill.
        delay_s: Time travelled at constant speed before braking starts.
        deceleration_mps2: Braking deceleration on level track.

    Returns:
        Maximum approach speed in m/s.
    """
    if target_speed_mps < 0:
        target_speed_mps = 0.0

    deceleration_mps2 -= GRAVITY_MPS2 * slope
    if deceleration_mps2 <= 0:
        logger.debug("speed_curve: non-positive deceleration %.3f, using target speed",
                     deceleration_mps2)
        return target_speed_mps

    square_speed_component = (target_speed_mps * target_speed_mps
                              + (delay_s * delay_s) * deceleration_mps2 * deceleration_mps2
                              + 2.0 * target_distance_m * deceleration_mps2)
    # Target already passed
    square_speed_component = max(0.0, square_speed_component)

    speed_component = delay_s * deceleration_mps2

    return math.sqrt(square_speed_component) - speed_component


def distance_curve(current_speed_mps: float, target_speed_mps: float, slope: float,
                   delay_s: float, deceleration_mps2: float) -> float:
    """Distance needed to slow from the current speed to the target speed.

    Includes the distance covered during the reaction delay.

    Args:
        current_speed_mps: Current speed in m/s.
        target_speed_mps: Target speed, negative means 0.
        slope: Track grade as a fraction, positive downhill.
        delay_s: Time travelled at constant speed before braking starts.
        deceleration_mps2: Braking deceleration on level track.

    Returns:
        Distance in meters.
    """
    if target_speed_mps < 0:
        target_speed_mps = 0.0

    delay_distance_m = delay_s * current_speed_mps

    adjusted_deceleration = deceleration_mps2 - GRAVITY_MPS2 * slope
    if adjusted_deceleration <= 0:
        logger.debug("distance_curve: non-positive deceleration %.3f",
                     adjusted_deceleration)
        if current_speed_mps > target_speed_mps:
            return math.inf
        return delay_distance_m

    braking_distance_m = ((current_speed_mps * current_speed_mps
                           - target_speed_mps * target_speed_mps)
                          / (2.0 * adjusted_deceleration))

    return braking_distance_m + delay_distance_m
