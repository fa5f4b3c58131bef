"""
Keyframe Decimation

Thins keyframes where they bunch up in time. Each key gets a local density
(number of keys within a sliding time window); keys more than 20% above
the average density form dense regions, and only every Nth key inside a
dense region survives.

First and last keys, stepped keys, and the keys at each end of a dense
region are always kept.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from ..core.curves import round_half_up


DEFAULT_TIME_WINDOW = 0.3
HIGH_DENSITY_FACTOR = 1.2


@dataclass
class KeyframeDensity:
    index: int
    density: int
    is_high_density: bool = False


def calculate_densities(keyframes: Sequence[Dict[str, Any]],
                        time_window: float = DEFAULT_TIME_WINDOW) -> List[KeyframeDensity]:
    """Local density of each key, flagged against 1.2x the average"""
    if not keyframes:
        return []

    half = time_window / 2
    times = [kf['time'] for kf in keyframes]
    densities = []
    for i, t in enumerate(times):
        count = sum(1 for other in times if t - half <= other <= t + half)
        densities.append(KeyframeDensity(i, count))

    average = sum(d.density for d in densities) / len(densities)
    threshold = average * HIGH_DENSITY_FACTOR
    for d in densities:
        d.is_high_density = d.density > threshold

    return densities


def _is_critical(index: int, keyframe: Dict[str, Any], densities: List[KeyframeDensity]) -> bool:
    if index == 0 or index == len(densities) - 1:
        return True
    if keyframe.get('curve') == 'stepped':
        return True

    current = densities[index]
    if not current.is_high_density:
        return False
    # Boundary of a dense run
    return not densities[index - 1].is_high_density or not densities[index + 1].is_high_density


def decimate_keyframes(keyframes: List[Dict[str, Any]], removal_percentage: float,
                       time_window: float = DEFAULT_TIME_WINDOW) -> List[Dict[str, Any]]:
    """
    Remove a share of keys from dense regions.

    Args:
        keyframes: Keys sorted by time, each with a 'time' entry
        removal_percentage: Share of dense-region keys to drop (0-100)
        time_window: Window in seconds used for density

    Returns:
        The surviving keys in their original order. The input is returned
        unchanged when there are 2 or fewer keys, the percentage is outside
        (0, 100), or nothing is dense.
    """
    if len(keyframes) <= 2:
        return keyframes
    if removal_percentage <= 0 or removal_percentage >= 100:
        return keyframes

    densities = calculate_densities(keyframes, time_window)
    if not any(d.is_high_density for d in densities):
        return keyframes

    keep_every_nth = max(1, round_half_up(100 / (100 - removal_percentage)))

    result = []
    counter = 0
    for i, keyframe in enumerate(keyframes):
        if _is_critical(i, keyframe, densities):
            result.append(keyframe)
            continue

        if densities[i].is_high_density:
            if counter % keep_every_nth == 0:
                result.append(keyframe)
            counter += 1
        else:
            result.append(keyframe)
            counter = 0

    return result


def analyze_keyframe_density(keyframes: Sequence[Dict[str, Any]],
                             time_window: float = DEFAULT_TIME_WINDOW) -> Dict[str, Any]:
    """Density statistics for a key list"""
    densities = calculate_densities(keyframes, time_window)
    total = len(keyframes)
    high = sum(1 for d in densities if d.is_high_density)
    return {
        'total_keyframes': total,
        'average_density': sum(d.density for d in densities) / (total or 1),
        'high_density_keyframes': high,
        'high_density_percentage': high / (total or 1) * 100,
        'densities': densities,
    }
