"""Level chain for the ISNCSCI worksheet.

The worksheet is a fixed, ordered chain of 29 levels from C1 to S4_5. The
chain is stored as a tuple so that the previous/next relation is purely
positional (previous = ordinal - 1, next = ordinal + 1).
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional

from .criteria import (
    ABSENT_LABEL,
    C1,
    KEY_MUSCLES,
    LEVEL_NAMES,
    LOWER_MUSCLES,
    S4_5,
    SIDES,
    Modality,
    Score,
    Side,
    normal_score,
)


def _blank_scores() -> dict:
    return {
        (side, modality): Score(raw=ABSENT_LABEL, value=0)
        for side in SIDES
        for modality in Modality
    }


@dataclass(eq=False)
class Level:
    """A single dermatome/myotome level with its recorded scores."""
    name: str
    ordinal: int
    is_key_muscle: bool = False
    is_lower_muscle: bool = False
    scores: dict = field(default_factory=_blank_scores)
    other_motor_function: dict = field(
        default_factory=lambda: {side: False for side in SIDES}
    )

    def score(self, side: Side, modality: Modality) -> Score:
        return self.scores[(side, modality)]

    def set_score(self, side: Side, modality: Modality, score: Score) -> None:
        self.scores[(side, modality)] = score

    def touch(self, side: Side) -> Score:
        return self.scores[(side, Modality.TOUCH)]

    def prick(self, side: Side) -> Score:
        return self.scores[(side, Modality.PRICK)]

    def motor(self, side: Side) -> Score:
        return self.scores[(side, Modality.MOTOR)]

    def has_other_motor_function(self, side: Side) -> bool:
        """True when this level is the side's lowest non-key muscle with motor function."""
        return self.other_motor_function[side]

    @property
    def is_s4_5(self) -> bool:
        return self.name == S4_5

    def __repr__(self) -> str:
        return f"Level({self.name})"


def _build_c1() -> Level:
    c1 = Level(name=C1, ordinal=0)
    for side in SIDES:
        for modality in Modality:
            c1.set_score(side, modality, normal_score(modality))
    return c1


class LevelChain:
    """Ordered, fixed-shape chain of worksheet levels.

    The shape never changes after construction; only the scores on each
    level are updated. Structural problems are programmer errors and raise
    ValueError here rather than surfacing during classification.
    """

    def __init__(self, levels: Optional[list[Level]] = None):
        if levels is None:
            levels = [_build_c1()] + [
                Level(
                    name=name,
                    ordinal=ordinal,
                    is_key_muscle=name in KEY_MUSCLES,
                    is_lower_muscle=name in LOWER_MUSCLES,
                )
                for ordinal, name in enumerate(LEVEL_NAMES)
                if name != C1
            ]
        self._levels = tuple(levels)
        self._validate()
        self._by_name = {level.name.upper(): level for level in self._levels}

    def _validate(self) -> None:
        if len(self._levels) != len(LEVEL_NAMES):
            raise ValueError(
                f"Level chain must contain {len(LEVEL_NAMES)} levels, got {len(self._levels)}"
            )

        seen = set()
        for position, level in enumerate(self._levels):
            if level.ordinal != position:
                raise ValueError(
                    f"Level {level.name} has ordinal {level.ordinal}, expected {position}"
                )
            if level.name != LEVEL_NAMES[position]:
                raise ValueError(
                    f"Level at position {position} is {level.name}, expected {LEVEL_NAMES[position]}"
                )
            if level.name in seen:
                raise ValueError(f"Duplicate level in chain: {level.name}")
            seen.add(level.name)

    def __iter__(self) -> Iterator[Level]:
        return iter(self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    def __getitem__(self, ordinal: int) -> Level:
        return self._levels[ordinal]

    @property
    def c1(self) -> Level:
        return self._levels[0]

    @property
    def s4_5(self) -> Level:
        return self._levels[-1]

    def get(self, name: str) -> Optional[Level]:
        """Find a level by name (case-insensitive)."""
        if not name:
            return None
        return self._by_name.get(name.strip().upper())

    def previous(self, level: Level) -> Optional[Level]:
        if level.ordinal == 0:
            return None
        return self._levels[level.ordinal - 1]

    def next(self, level: Level) -> Optional[Level]:
        if level.ordinal >= len(self._levels) - 1:
            return None
        return self._levels[level.ordinal + 1]

    def examined_levels(self) -> tuple[Level, ...]:
        """Levels C2..S4_5, the part of the chain the exam records."""
        return self._levels[1:]

    def below(self, level: Level) -> tuple[Level, ...]:
        """All levels caudal to the given level."""
        return self._levels[level.ordinal + 1:]
