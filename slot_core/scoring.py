"""Payline and scatter evaluation turning a board into a win breakdown."""

from __future__ import annotations

from typing import Optional

from .catalog import PaylineTable, SymbolCatalog
from .errors import EngineInvariantError
from .models import Board, Cell, LineWin, PaylinePattern, Symbol, WinBreakdown

MIN_LINE_MATCH = 3


class PayoutEvaluator:
    """Score boards against one payline table and symbol catalog.

    Evaluation is pure: the same board and tables always give an equal
    :class:`WinBreakdown`.
    """

    def __init__(self, paylines: PaylineTable, symbols: SymbolCatalog) -> None:
        self._paylines = paylines
        self._symbols = symbols
        self._lookup: dict[str, Symbol] = {symbol.id: symbol for symbol in symbols}
        self._scatter = symbols.scatter_symbol

    @property
    def paylines(self) -> PaylineTable:
        return self._paylines

    @property
    def symbols(self) -> SymbolCatalog:
        return self._symbols

    def _definition(self, symbol_id: str, board: Board) -> Symbol:
        definition = self._lookup.get(symbol_id)
        if definition is None:
            raise EngineInvariantError(
                "Board holds a symbol the catalog does not define",
                {"symbol_id": symbol_id, "board": board.to_lists()},
            )
        return definition

    def match_line(self, board: Board, pattern: PaylinePattern) -> Optional[LineWin]:
        """Return the winning run on ``pattern``, or None when fewer than three cells match.

        Cells outside the board are dropped first. The run target is the first
        symbol that is neither wild nor scatter; wilds extend the run when their
        substitution rules allow the target.
        """

        cells: list[Cell] = [cell for cell in pattern.cells if board.contains_cell(*cell)]
        if len(cells) < MIN_LINE_MATCH:
            return None
        line = [self._definition(board.symbol_at(col, row), board) for col, row in cells]

        target = next((s for s in line if not s.is_wild and not s.is_scatter), None)
        if target is None:
            return None

        count = 0
        wild_positions: list[Cell] = []
        for cell, symbol in zip(cells, line):
            if symbol.id == target.id:
                count += 1
            elif symbol.is_wild and symbol.can_substitute(target):
                count += 1
                wild_positions.append(cell)
            else:
                break

        if count < MIN_LINE_MATCH:
            return None
        return LineWin(
            line_id=pattern.id,
            symbol_id=target.id,
            count=count,
            payout=target.payouts.for_count(count),
            positions=tuple(cells[:count]),
            wild_positions=tuple(wild_positions),
        )

    def count_scatters(self, board: Board) -> int:
        scatter = self._scatter
        count = 0
        for symbol_id in board.symbols():
            self._definition(symbol_id, board)
            if scatter is not None and symbol_id == scatter.id:
                count += 1
        return count

    def evaluate(self, board: Board) -> WinBreakdown:
        line_wins: list[LineWin] = []
        best_line: Optional[LineWin] = None
        best_payout = 0.0
        line_score = 0.0
        for pattern in self._paylines:
            win = self.match_line(board, pattern)
            if win is None:
                continue
            line_wins.append(win)
            line_score += win.payout
            # ties keep the first line found
            if win.payout > best_payout:
                best_payout = win.payout
                best_line = win

        scatter_count = self.count_scatters(board)
        scatter_payout = 0.0
        triggered = False
        scatter_id = None
        if self._scatter is not None and self._scatter.scatter is not None:
            scatter_id = self._scatter.id
            scatter_payout = self._scatter.scatter.payout_for(scatter_count)
            triggered = scatter_count >= self._scatter.scatter.min_count

        return WinBreakdown(
            line_wins=tuple(line_wins),
            line_score=line_score,
            scatter_payout=scatter_payout,
            total_score=line_score + scatter_payout,
            best_line=best_line,
            scatter_symbol_id=scatter_id,
            scatter_count=scatter_count,
            feature_triggered=triggered,
        )

    def score(self, board: Board) -> float:
        """Return ``evaluate(board).total_score``."""

        return self.evaluate(board).total_score


def evaluate(board: Board, paylines: PaylineTable, symbols: SymbolCatalog) -> WinBreakdown:
    """Evaluate ``board`` without keeping an evaluator around."""

    return PayoutEvaluator(paylines, symbols).evaluate(board)
