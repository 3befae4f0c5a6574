from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pickleball.models.enums import KnockoutStructure


class RoundTag(str, Enum):
    ROUND_ROBIN = "round_robin"
    GROUP = "group"
    QUARTERFINAL = "quarterfinal"
    SEMIFINAL = "semifinal"
    FINAL = "final"
    CUSTOM = "custom"


_KNOCKOUT_CHAIN = (RoundTag.QUARTERFINAL, RoundTag.SEMIFINAL, RoundTag.FINAL)

_FIXED_LABELS = {
    RoundTag.ROUND_ROBIN: "Round Robin",
    RoundTag.QUARTERFINAL: "Quarterfinal",
    RoundTag.SEMIFINAL: "Semifinal",
    RoundTag.FINAL: "Final",
}


@dataclass(frozen=True)
class RoundKind:
    """What a round *is*, carried explicitly on every match.

    ``detail`` holds the variant payload: the group letter for ``GROUP`` and
    the admin-chosen name for ``CUSTOM``. It is ``None`` for the other tags.
    """

    tag: RoundTag
    detail: Optional[str] = None

    def __post_init__(self):
        needs_detail = self.tag in (RoundTag.GROUP, RoundTag.CUSTOM)
        if needs_detail and not self.detail:
            raise ValueError(f"Round kind {self.tag.value} requires a detail")
        if not needs_detail and self.detail is not None:
            raise ValueError(f"Round kind {self.tag.value} takes no detail")

    @classmethod
    def group(cls, letter: str) -> "RoundKind":
        return cls(RoundTag.GROUP, letter)

    @classmethod
    def custom(cls, label: str) -> "RoundKind":
        return cls(RoundTag.CUSTOM, label.strip())

    @classmethod
    def for_structure(cls, structure: KnockoutStructure) -> "RoundKind":
        return {
            KnockoutStructure.DIRECT_FINAL: FINAL,
            KnockoutStructure.SEMIFINAL: SEMIFINAL,
            KnockoutStructure.QUARTERFINAL: QUARTERFINAL,
        }[structure]

    @property
    def label(self) -> str:
        if self.tag is RoundTag.GROUP:
            return f"Group {self.detail}"
        if self.tag is RoundTag.CUSTOM:
            return self.detail
        return _FIXED_LABELS[self.tag]

    @property
    def is_knockout(self) -> bool:
        return self.tag in _KNOCKOUT_CHAIN

    @property
    def is_group(self) -> bool:
        return self.tag is RoundTag.GROUP

    def next_knockout(self) -> Optional["RoundKind"]:
        """The round that winners of this knockout round advance into.

        Returns ``None`` for the Final.
        """
        if not self.is_knockout:
            raise ValueError(f"{self.label} is not a knockout round")
        position = _KNOCKOUT_CHAIN.index(self.tag)
        if position + 1 == len(_KNOCKOUT_CHAIN):
            return None
        return RoundKind(_KNOCKOUT_CHAIN[position + 1])

    def __str__(self) -> str:
        return self.label


ROUND_ROBIN = RoundKind(RoundTag.ROUND_ROBIN)
QUARTERFINAL = RoundKind(RoundTag.QUARTERFINAL)
SEMIFINAL = RoundKind(RoundTag.SEMIFINAL)
FINAL = RoundKind(RoundTag.FINAL)
