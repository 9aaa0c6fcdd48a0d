"""
Dice parsing, rolling and formatting logic.

This module provides:
- parse: Turn dice notation (e.g., "3d6+2") into a DiceSpecification
  or a typed ParseError
- DiceRoller: Execute a roll for a DiceSpecification
- group: Collect duplicate face values from a roll
- format_roll: Render the chat report for a roll
"""

import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union


GroupSummary = Dict[int, List[int]]


class ParseFailure(Enum):
    """Reasons a dice notation string can be rejected."""

    INVALID_FORMAT = "Invalid format"
    INVALID_SIDES = "Invalid sides"
    INVALID_AMOUNT = "Invalid amount"
    INVALID_MODIFIER = "Invalid modifier"

    @property
    def message(self) -> str:
        """User-facing reply for this failure."""
        return self.value


@dataclass(frozen=True)
class DiceSpecification:
    """
    A single parsed dice term.

    Attributes:
        query: Original notation string, echoed back in the report
        amount: Number of dice to roll
        sides: Faces per die
        modifier: Flat adjustment applied once to the total
    """

    query: str
    amount: int
    sides: int
    modifier: int = 0


@dataclass(frozen=True)
class ParseSuccess:
    spec: DiceSpecification


@dataclass(frozen=True)
class ParseError:
    reason: ParseFailure

    @property
    def message(self) -> str:
        return self.reason.message


ParseOutcome = Union[ParseSuccess, ParseError]


@dataclass(frozen=True)
class RollResult:
    """
    Result of rolling a DiceSpecification.

    Attributes:
        amount: Number of dice rolled
        sides: Number of sides per die
        modifier: Modifier added to total (can be negative)
        outcomes: Individual die results in draw order
        total: Sum of outcomes plus modifier
    """

    amount: int
    sides: int
    modifier: int
    outcomes: List[int]
    total: int

    @property
    def minimum(self) -> int:
        """Total when every die shows 1."""
        return self.amount + self.modifier

    @property
    def maximum(self) -> int:
        """Total when every die shows its highest face."""
        return self.amount * self.sides + self.modifier

    @property
    def average(self) -> float:
        """Midpoint of minimum and maximum (not the mean of the outcomes)."""
        return (self.minimum + self.maximum) / 2


# =============================================================================
# Parser
# =============================================================================

# Groups capture whole alphanumeric runs so that stray text touching the
# term is reported against the field it landed in.
PATTERN = re.compile(
    r"(?P<amount>[A-Za-z0-9]*?)"
    r"d(?P<sides>[0-9][A-Za-z0-9]*)"
    r"(?P<modifier>[-+*/][A-Za-z0-9]+)?"
)


def _parse_int(text: str) -> Optional[int]:
    """Parse an unsigned base-10 integer, or return None."""
    if text.isascii() and text.isdigit():
        try:
            return int(text)
        except ValueError:
            # Longer than the interpreter allows for str -> int
            return None
    return None


def parse(query: str) -> ParseOutcome:
    """
    Parse dice notation into a DiceSpecification.

    Supports [amount]d<sides>[op modifier] where op is one of + - * /.
    Only the first term found in the string is used.

    Validation runs in a fixed order (format, sides, amount, modifier) and
    only the first problem found is reported.

    Args:
        query: Raw notation text (e.g., "2d6+5", "d20", "roll 3d8")

    Returns:
        ParseSuccess carrying the specification, or ParseError carrying
        the failure reason

    Examples:
        >>> parse("3d6")
        ParseSuccess(spec=DiceSpecification(query='3d6', amount=3, sides=6, modifier=0))
        >>> parse("hello")
        ParseError(reason=<ParseFailure.INVALID_FORMAT: 'Invalid format'>)
    """
    match = PATTERN.search(query)
    if match is None:
        return ParseError(ParseFailure.INVALID_FORMAT)

    sides = _parse_int(match.group("sides"))
    if sides is None or sides < 1:
        return ParseError(ParseFailure.INVALID_SIDES)

    amount_str = match.group("amount")
    if amount_str:
        amount = _parse_int(amount_str)
        if amount is None:
            return ParseError(ParseFailure.INVALID_AMOUNT)
    else:
        amount = 1

    modifier_str = match.group("modifier")
    if modifier_str:
        modifier = _parse_int(modifier_str[1:])
        if modifier is None:
            return ParseError(ParseFailure.INVALID_MODIFIER)
        if modifier_str[0] == "-":
            modifier = -modifier
    else:
        modifier = 0

    return ParseSuccess(
        DiceSpecification(query=query, amount=amount, sides=sides, modifier=modifier)
    )


# =============================================================================
# Roller
# =============================================================================


class DiceRoller:
    """
    Execute dice rolls.

    Uses a configurable random number generator for testability.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize roller.

        Args:
            rng: Random number generator (defaults to system RNG)
        """
        self.rng = rng or random.Random()

    def roll(self, spec: DiceSpecification) -> RollResult:
        """
        Roll every die in a specification.

        Args:
            spec: Parsed dice specification

        Returns:
            RollResult with outcomes in draw order
        """
        outcomes = [self.rng.randint(1, spec.sides) for _ in range(spec.amount)]

        return RollResult(
            amount=spec.amount,
            sides=spec.sides,
            modifier=spec.modifier,
            outcomes=outcomes,
            total=sum(outcomes) + spec.modifier,
        )


# =============================================================================
# Grouping and formatting
# =============================================================================


def group(outcomes: List[int]) -> GroupSummary:
    """
    Map each face value to the positions where it was rolled.

    Keys appear in order of first occurrence.
    """
    groups: GroupSummary = {}
    for index, value in enumerate(outcomes):
        groups.setdefault(value, []).append(index)
    return groups


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_groups(groups: GroupSummary) -> str:
    """Render one bullet per face value rolled more than once."""
    return "\n".join(
        f"  - **{len(positions)}** {face}s"
        for face, positions in groups.items()
        if len(positions) > 1
    )


def format_roll(
    spec: DiceSpecification,
    result: RollResult,
    groups: GroupSummary,
    show_groups: bool,
) -> str:
    """
    Format a roll for chat display.

    Returns:
        Multi-line report. Example:

            You rolled **3d6** (max is 18, min is 3, avg is 10.5):
            - Results: **4, 4, 2**
            - Total: **10**
            - Groups:
              - **2** 4s
    """
    text = (
        f"You rolled **{spec.query}** "
        f"(max is {result.maximum}, min is {result.minimum}, "
        f"avg is {_format_number(result.average)}):\n"
        f"- Results: **{', '.join(str(o) for o in result.outcomes)}**\n"
        f"- Total: **{result.total}**\n"
    )

    # The header is written even when no face repeats.
    if show_groups:
        text += f"- Groups:\n{format_groups(groups)}"

    return text
