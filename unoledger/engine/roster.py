import dataclasses
from typing import Iterable, Iterator, TypeAlias

from unoledger import errors

PlayerId: TypeAlias = str

MAX_PLAYERS = 10
MIN_PLAYERS_TO_START = 2


@dataclasses.dataclass
class Roster:
    """
    Seating order of a session. The order players joined in
    is the order they take turns in.
    """

    members: list[PlayerId] = dataclasses.field(default_factory=list)
    capacity: int = MAX_PLAYERS

    @classmethod
    def seed(cls, creator: PlayerId) -> "Roster":
        return cls(members=[creator])

    @classmethod
    def from_members(cls, members: Iterable[PlayerId]) -> "Roster":
        return cls(members=list(members))

    def __iter__(self) -> Iterator[PlayerId]:
        return iter(self.members)

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, player: object) -> bool:
        return player in self.members

    @property
    def is_full(self) -> bool:
        return len(self) >= self.capacity

    @property
    def can_start(self) -> bool:
        return len(self) >= MIN_PLAYERS_TO_START

    def size(self) -> int:
        return len(self)

    def member_at(self, index: int) -> PlayerId:
        if not 0 <= index < len(self):
            raise errors.PlayerNotFound(f"No player at seat {index}, roster has {len(self)}.")

        return self.members[index]

    def join(self, player: PlayerId) -> None:
        if self.is_full:
            raise errors.RosterFull(f"Roster is full, {self.capacity} players max.")

        self.members.append(player)
