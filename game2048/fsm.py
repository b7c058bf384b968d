from __future__ import annotations

from statemachine import State, StateMachine

from game2048.models import GamePhase, GameState


def phase_for(*, has_won: bool, is_over: bool) -> GamePhase:
    if is_over:
        return GamePhase.over
    if has_won:
        return GamePhase.won
    return GamePhase.playing


class GameFSM(StateMachine):
    """FSM wrapper around GameState.

    The flags (`has_won`, `is_over`) stay authoritative; the machine only
    guards which phase changes are legal and mirrors the result into
    `GameState.phase`. `won` is soft (play continues), `over` is left only by
    undo or a new game.
    """

    playing = State(GamePhase.playing.value, value=GamePhase.playing.value, initial=True)
    won = State(GamePhase.won.value, value=GamePhase.won.value)
    over = State(GamePhase.over.value, value=GamePhase.over.value)

    win = playing.to(won) | over.to(won)
    lose = playing.to(over) | won.to(over)
    resume = won.to(playing) | over.to(playing)

    def __init__(self, game: GameState):
        self.game = game
        super().__init__(start_value=game.phase.value)

    def advance_to(self, target: GamePhase) -> bool:
        """Fire the event leading to `target`; False when already there."""

        if GamePhase(str(self.current_state.value)) == target:
            return False
        event = {GamePhase.won: "win", GamePhase.over: "lose", GamePhase.playing: "resume"}[target]
        self.send(event)
        self.sync_phase_to_model()
        return True

    def sync_phase_to_model(self) -> None:
        self.game.phase = GamePhase(str(self.current_state.value))
