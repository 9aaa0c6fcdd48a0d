"""
Dice Roller Plugin

Roll dice in chat and see which faces came up more than once.

Commands:
    !roll <notation> - Roll dice using standard notation (e.g., 3d6, d20+5)

Example usage:
    !roll 3d6 ->
        You rolled **3d6** (max is 18, min is 3, avg is 10.5):
        - Results: **4, 4, 2**
        - Total: **10**
        - Groups:
          - **2** 4s
"""

try:
    # When imported as a package
    from .plugin import DiceRollerPlugin, ReplySink
    from .dice import (
        DiceRoller,
        DiceSpecification,
        ParseError,
        ParseFailure,
        ParseSuccess,
        RollResult,
        format_roll,
        group,
        parse,
    )
except ImportError:
    # When imported directly (e.g., from tests)
    from plugin import DiceRollerPlugin, ReplySink  # type: ignore[no-redef]
    from dice import (  # type: ignore[no-redef]
        DiceRoller,
        DiceSpecification,
        ParseError,
        ParseFailure,
        ParseSuccess,
        RollResult,
        format_roll,
        group,
        parse,
    )

__all__ = [
    "DiceRollerPlugin",
    "ReplySink",
    "DiceRoller",
    "DiceSpecification",
    "ParseError",
    "ParseFailure",
    "ParseSuccess",
    "RollResult",
    "format_roll",
    "group",
    "parse",
]
__version__ = "2.0.0"
