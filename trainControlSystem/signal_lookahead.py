"""Signal lookahead cache.

Holds the upcoming signals and speed posts ahead of the train for a single
update tick. Entries are read through: the first request for an index that is
not cached scans the train's object list and appends what it finds, later
requests for the same index return the cached value. The cache must be
cleared at the start of each tick.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from universal.universal import SignalAspect, TravelDirection

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class TrainObjectType(Enum):
    """Kinds of track object reported ahead of the train."""
    SIGNAL = "signal"
    SPEEDPOST = "speedpost"
    AUTHORITY = "authority"


class LookaheadItem(Enum):
    """Values that can be looked up for an upcoming object."""
    SIGNAL_SPEED_LIMIT = "signal_speed_limit"
    SIGNAL_ASPECT = "signal_aspect"
    SIGNAL_DISTANCE = "signal_distance"
    POST_SPEED_LIMIT = "post_speed_limit"
    POST_DISTANCE = "post_distance"


@dataclass
class TrainObjectItem:
    """A track object ahead of the train.

    Attributes:
        item_type: Signal, speed post or end of authority.
        allowed_speed_mps: Speed allowed past the object, negative if none.
        distance_to_train_m: Distance from the train to the object.
        signal_aspect: Aspect shown, signals only.
    """
    item_type: TrainObjectType
    allowed_speed_mps: float
    distance_to_train_m: float
    signal_aspect: SignalAspect = SignalAspect.NONE


@dataclass
class TrainInfo:
    """Snapshot of the train's static limit and upcoming objects, nearest first."""
    allowed_speed_mps: float = 0.0
    objects_forward: List[TrainObjectItem] = field(default_factory=list)
    objects_backward: List[TrainObjectItem] = field(default_factory=list)


SIGNAL_SENTINEL = (-1.0, SignalAspect.NONE, math.inf)
POST_SENTINEL = (-1.0, math.inf)


class SignalLookahead:
    """Tick-scoped read-through cache of upcoming signals and speed posts.

    Attributes:
        signal_speed_limits: Speed limits of the signals found so far.
        signal_aspects: Aspects of the signals found so far.
        signal_distances: Distances to the signals found so far.
        post_speed_limits: Speed limits of the speed posts found so far.
        post_distances: Distances to the speed posts found so far.
    """

    def __init__(self, train_info_source: Callable[[], TrainInfo],
                 direction_source: Callable[[], TravelDirection]) -> None:
        """Initialize an empty cache.

        Args:
            train_info_source: Returns a fresh TrainInfo from the train model.
            direction_source: Returns the current direction of travel.
        """
        self._train_info_source = train_info_source
        self._direction_source = direction_source
        self.train_info: Optional[TrainInfo] = None
        self.signal_speed_limits: List[float] = []
        self.signal_aspects: List[SignalAspect] = []
        self.signal_distances: List[float] = []
        self.post_speed_limits: List[float] = []
        self.post_distances: List[float] = []

    def clear(self) -> None:
        """Drop everything cached in the previous tick."""
        self.train_info = None
        self.signal_speed_limits.clear()
        self.signal_aspects.clear()
        self.signal_distances.clear()
        self.post_speed_limits.clear()
        self.post_distances.clear()

    def _list_for(self, kind: LookaheadItem) -> List[Any]:
        return {
            LookaheadItem.SIGNAL_SPEED_LIMIT: self.signal_speed_limits,
            LookaheadItem.SIGNAL_ASPECT: self.signal_aspects,
            LookaheadItem.SIGNAL_DISTANCE: self.signal_distances,
            LookaheadItem.POST_SPEED_LIMIT: self.post_speed_limits,
            LookaheadItem.POST_DISTANCE: self.post_distances,
        }[kind]

    def _snapshot(self) -> TrainInfo:
        if self.train_info is None:
            self.train_info = self._train_info_source()
        return self.train_info

    def train_speed_limit_mps(self) -> float:
        return self._snapshot().allowed_speed_mps

    def next_signal_item(self, index: int, kind: LookaheadItem) -> Any:
        """Look up a value for the index-th upcoming object of a kind.

        Args:
            index: Lookahead index, 0 is the nearest object. Negative means 0.
            kind: Which value to return.

        Returns:
            The cached value. Past the last object the last value is returned;
            with no object at all, the sentinel for the kind.
        """
        if index < 0:
            index = 0
        values = self._list_for(kind)
        if index >= len(values):
            searching_signals = kind in (LookaheadItem.SIGNAL_SPEED_LIMIT,
                                         LookaheadItem.SIGNAL_ASPECT,
                                         LookaheadItem.SIGNAL_DISTANCE)
            self._search(index, searching_signals)
        return values[index if index < len(values) else len(values) - 1]

    def _search(self, index: int, searching_signals: bool) -> None:
        info = self._snapshot()
        if self._direction_source() == TravelDirection.REVERSE:
            objects = info.objects_backward
        else:
            objects = info.objects_forward

        signals_found = 0
        posts_found = 0

        for item in objects:
            if item.item_type == TrainObjectType.SPEEDPOST:
                posts_found += 1
                if posts_found > len(self.post_speed_limits):
                    self.post_speed_limits.append(item.allowed_speed_mps)
                    self.post_distances.append(item.distance_to_train_m)
            else:
                signals_found += 1
                if signals_found > len(self.signal_speed_limits):
                    if item.item_type == TrainObjectType.AUTHORITY:
                        # End of authority acts as a stop signal
                        self.signal_speed_limits.append(0.0)
                        self.signal_aspects.append(SignalAspect.STOP)
                    else:
                        self.signal_speed_limits.append(item.allowed_speed_mps)
                        self.signal_aspects.append(item.signal_aspect)
                    self.signal_distances.append(item.distance_to_train_m)

            if searching_signals and signals_found > index:
                break
            if not searching_signals and posts_found > index:
                break

        if searching_signals and not self.signal_speed_limits:
            speed_limit, aspect, distance = SIGNAL_SENTINEL
            self.signal_speed_limits.append(speed_limit)
            self.signal_aspects.append(aspect)
            self.signal_distances.append(distance)
        if not searching_signals and not self.post_speed_limits:
            speed_limit, distance = POST_SENTINEL
            self.post_speed_limits.append(speed_limit)
            self.post_distances.append(distance)

        logger.debug("Lookahead scan for index %d found %d signals, %d posts",
                     index, signals_found, posts_found)

    def next_signal_speed_limit_mps(self, index: int) -> float:
        return self.next_signal_item(index, LookaheadItem.SIGNAL_SPEED_LIMIT)

    def next_signal_aspect(self, index: int) -> SignalAspect:
        return self.next_signal_item(index, LookaheadItem.SIGNAL_ASPECT)

    def next_signal_distance_m(self, index: int) -> float:
        return self.next_signal_item(index, LookaheadItem.SIGNAL_DISTANCE)

    def next_post_speed_limit_mps(self, index: int) -> float:
        return self.next_signal_item(index, LookaheadItem.POST_SPEED_LIMIT)

    def next_post_distance_m(self, index: int) -> float:
        return self.next_signal_item(index, LookaheadItem.POST_DISTANCE)
