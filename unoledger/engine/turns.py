import dataclasses

from unoledger.engine.roster import PlayerId, Roster


def step(index: int, size: int, clockwise: bool = True) -> int:
    """
    Seat that plays after `index` in a roster of `size` players.

    Stepping with the opposite direction undoes a step, which
    is what makes a recorded history replayable backwards.
    """
    if size <= 0:
        raise ValueError("Cannot step through an empty roster.")

    offset = 1 if clockwise else size - 1
    return (index + offset) % size


@dataclasses.dataclass
class TurnManager:
    current_player_index: int = 0
    turn_count: int = 0
    direction_clockwise: bool = True

    def current_player(self, roster: Roster) -> PlayerId:
        return roster.member_at(self.current_player_index)

    def is_current_player(self, roster: Roster, identity: PlayerId) -> bool:
        if not 0 <= self.current_player_index < len(roster):
            return False

        return self.current_player(roster) == identity

    def advance(self, roster: Roster) -> int:
        self.turn_count += 1
        self.current_player_index = step(
            self.current_player_index, len(roster), self.direction_clockwise
        )
        return self.current_player_index
