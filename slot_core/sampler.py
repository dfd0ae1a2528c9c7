"""Uniform random board generation used for pool construction and score estimates."""

from __future__ import annotations

import random

from .catalog import SymbolCatalog
from .errors import ConfigurationError
from .models import Board, BoardConfig


class BoardSampler:
    """Fill every cell with a symbol drawn uniformly by catalog index.

    Appearance weights only drive reel animation; biasing boards by them would
    skew the score distribution that pools and RTP estimates are built from.
    """

    def __init__(self, symbols: SymbolCatalog, board: BoardConfig) -> None:
        if len(symbols) == 0:
            raise ConfigurationError("Cannot sample boards from an empty symbol catalog")
        self._ids = symbols.ids
        self._board = board

    @property
    def board_config(self) -> BoardConfig:
        return self._board

    def sample(self, rng: random.Random) -> Board:
        ids = self._ids
        count = len(ids)
        return Board(
            tuple(
                tuple(ids[rng.randrange(count)] for _ in range(self._board.rows))
                for _ in range(self._board.cols)
            )
        )


def sample_board(symbols: SymbolCatalog, board: BoardConfig, rng: random.Random) -> Board:
    """Convenience wrapper around :meth:`BoardSampler.sample`."""

    return BoardSampler(symbols, board).sample(rng)
