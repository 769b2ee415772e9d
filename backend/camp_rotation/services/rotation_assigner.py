"""
Rotation Assigner - Cyclic Latin-square group/station mapping

For rotation index r (0-based) and group index g, the group is sent to
station (g + r) mod S, where S is the station count. With as many groups as
stations this is a Latin square: every rotation is a bijection between
groups and stations, and every group visits every station exactly once in
any S consecutive rotations. The pattern repeats with period S, so longer
schedules revisit stations in the same order.

With unequal counts the same formula is a best-effort wraparound over the
station list: every group still gets a station each rotation, but stations
may be shared (more groups) or idle (more stations).
"""

from typing import List, Sequence, Tuple, TypeVar

from camp_rotation.errors import MissingResources

G = TypeVar("G")
S = TypeVar("S")


def is_balanced(group_count: int, station_count: int) -> bool:
    return group_count > 0 and group_count == station_count


def station_index_for(group_index: int, rotation_index: int, station_count: int) -> int:
    """Station visited by group_index during rotation_index (both 0-based)"""
    return (group_index + rotation_index) % station_count


def build_rotation_assignments(
    rotation_count: int,
    group_ids: Sequence[G],
    station_ids: Sequence[S],
) -> List[List[Tuple[G, S]]]:
    """
    Compute the (group, station) pairs for each rotation.

    Groups and stations are taken in the order given (their sort order);
    the result is a pure function of that order and the rotation count.

    Args:
        rotation_count: Number of station-rotation blocks
        group_ids: Groups in fixed order
        station_ids: Stations in fixed order

    Returns:
        One list of (group_id, station_id) per rotation, in group order

    Raises:
        MissingResources: no groups or no stations
    """
    if not group_ids or not station_ids:
        raise MissingResources(
            f"Rotation assignment needs at least one group and one station "
            f"(groups={len(group_ids)}, stations={len(station_ids)})",
            {"group_count": len(group_ids), "station_count": len(station_ids)},
        )

    station_count = len(station_ids)
    return [
        [
            (group_id, station_ids[station_index_for(group_index, rotation_index, station_count)])
            for group_index, group_id in enumerate(group_ids)
        ]
        for rotation_index in range(max(rotation_count, 0))
    ]
