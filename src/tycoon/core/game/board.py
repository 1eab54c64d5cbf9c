from typing import Any, Dict, Iterable, List, Mapping, Optional

from tycoon.core.game.spaces import Group, Space, SpaceType


class Board:
    """An immutable, validated board shared by reference across sessions."""

    def __init__(self, board_id: str, name: str, spaces: Iterable[Space], groups: Mapping[str, Group]):
        self.id = board_id
        self.name = name
        self.spaces: List[Space] = sorted(spaces, key=lambda s: s.index)
        self.groups: Dict[str, Group] = self._attach_members(groups)
        self.start_index = self._single_index(SpaceType.START)
        self.jail_index = self._single_index(SpaceType.JAIL)

    def _attach_members(self, groups: Mapping[str, Group]) -> Dict[str, Group]:
        """Record the board indexes of each group's properties on the group."""
        members: Dict[str, List[int]] = {gid: [] for gid in groups}
        for space in self.spaces:
            if space.space_type == SpaceType.PROPERTY and space.group in members:
                members[space.group].append(space.index)
        return {
            gid: Group(
                id=gid,
                size=group.size,
                house_price=group.house_price,
                color=group.color,
                max_houses=group.max_houses,
                members=tuple(members[gid]),
            )
            for gid, group in groups.items()
        }

    def _single_index(self, space_type: SpaceType) -> int:
        for space in self.spaces:
            if space.space_type == space_type:
                return space.index
        return 0

    def __len__(self) -> int:
        return len(self.spaces)

    def get_space(self, position: int) -> Space:
        """Get the space at the given position."""
        return self.spaces[position % len(self.spaces)]

    def get_group(self, group_id: Optional[str]) -> Optional[Group]:
        if group_id is None:
            return None
        return self.groups.get(group_id)

    def indexes_of_type(self, space_type: SpaceType) -> List[int]:
        """Get positions of all spaces of a type, ascending."""
        return [s.index for s in self.spaces if s.space_type == space_type]

    def find_next_of_type(self, position: int, space_type: SpaceType) -> Optional[int]:
        """Find the next space of a type strictly ahead of position, wrapping around."""
        candidates = self.indexes_of_type(space_type)
        if not candidates:
            return None
        for index in candidates:
            if index > position:
                return index
        return candidates[0]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Board":
        """Build a board from its JSON shape. Call validate_board first."""
        spaces = [
            Space(
                index=int(raw["index"]),
                space_type=SpaceType(raw["type"]),
                name=raw.get("name", raw["type"]),
                group=raw.get("group"),
                price=int(raw.get("price", 0)),
                rent=tuple(int(r) for r in raw.get("rent", ())),
                amount=int(raw.get("amount", 0)),
            )
            for raw in data["spaces"]
        ]
        groups = {
            gid: Group(
                id=gid,
                size=int(raw["size"]),
                house_price=int(raw.get("house_price", 0)),
                color=raw.get("color", ""),
                max_houses=int(raw.get("max_houses", 5)),
            )
            for gid, raw in (data.get("groups") or {}).items()
        }
        return cls(data["id"], data["name"], spaces, groups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "spaces": [s.to_dict() for s in self.spaces],
            "groups": {gid: g.to_dict() for gid, g in self.groups.items()},
        }

    def __repr__(self) -> str:
        return f"Board(id='{self.id}', spaces={len(self.spaces)})"
