"""
VibeJo - Input Validation Utilities

Provides validation functions for game engine inputs. All validators
either return validated data or raise descriptive ValueError exceptions.
"""

from typing import Sequence

from src.engine.base import HAND_SIZE

MIN_PLAYERS = 2
MAX_PLAYERS = 4


def validate_card_index(index: int, hand_size: int = HAND_SIZE) -> int:
    """
    Validate a grid index into a hand.

    Args:
        index: Grid index
        hand_size: Number of cards in the hand

    Returns:
        Validated index

    Raises:
        ValueError: If index is out of range
    """
    if not isinstance(index, int) or isinstance(index, bool):
        raise ValueError(f"Card index must be an integer, got {type(index).__name__}.")

    if not (0 <= index < hand_size):
        raise ValueError(
            f"Card index {index} is out of range. Must be between 0 and {hand_size - 1}."
        )

    return index


def validate_player_count(count: int) -> int:
    """
    Validate number of players.

    Args:
        count: Number of players

    Returns:
        Validated count

    Raises:
        ValueError: If count is not 2-4
    """
    if not isinstance(count, int):
        raise ValueError(f"Player count must be an integer, got {type(count).__name__}.")

    if not (MIN_PLAYERS <= count <= MAX_PLAYERS):
        raise ValueError(f"Player count must be {MIN_PLAYERS}-{MAX_PLAYERS}, got {count}.")

    return count


def validate_player_names(names: Sequence[str]) -> tuple[str, ...]:
    """
    Validate display names of the players at a table.

    Raises:
        ValueError: If a name is blank or the count is not 2-4
    """
    validate_player_count(len(names))
    cleaned = tuple(name.strip() for name in names)
    for i, name in enumerate(cleaned):
        if not name:
            raise ValueError(f"Player name at index {i} must not be blank.")
    return cleaned


def validate_target_score(score: int) -> int:
    """
    Validate the cumulative score that ends a game.

    Raises:
        ValueError: If score is not a positive integer
    """
    if not isinstance(score, int):
        raise ValueError(f"Target score must be an integer, got {type(score).__name__}.")

    if score <= 0:
        raise ValueError(f"Target score must be positive, got {score}.")

    return score
