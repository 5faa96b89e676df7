"""
Single-player Golf against a CPU opponent.

LocalGame owns the only Game instance and applies the human's actions to it
synchronously, reporting each outcome through a Notifier. The CPU's reply
and the end of the peek phase are deferred callbacks scheduled on the event
loop, so they never interleave with a human action: while one is pending it
is not the human's turn and the rules refuse their moves.

Every public action returns a fresh snapshot of the game from the human's
point of view.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from ai import choose_move, first_unlocked_position
from cards import Card, is_four_of_a_kind
from constants import CPU_TURN_DELAY, PEEK_SETTLE_DELAY
from game import FINISHED_PHASES, SINGLE_PLAYER_SEATS, Game, GamePhase, RuleViolation
from notifications import ERROR, INFO, SUCCESS, Notifier, log_notifier

logger = logging.getLogger(__name__)

PLAYER, CPU = SINGLE_PLAYER_SEATS

Scheduler = Callable[[float, Callable[[], None]], Any]


def loop_scheduler(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    """Schedule a callback on the running event loop."""
    return asyncio.get_running_loop().call_later(delay, callback)


class LocalGame:
    """
    Locally authoritative engine for one human against the CPU.

    Args:
        notify: Receives a notice for every accepted or refused action.
        schedule: ``schedule(delay, callback)`` returning a cancellable
            handle; defaults to the running asyncio loop.
        cpu_delay: Seconds between the human's locking action and the CPU's move.
        peek_settle_delay: Seconds between the last peek and the start of play.
        seed: Optional shuffle seed for every deal (deterministic tests).
    """

    def __init__(
        self,
        notify: Notifier = log_notifier,
        schedule: Optional[Scheduler] = None,
        cpu_delay: float = CPU_TURN_DELAY,
        peek_settle_delay: float = PEEK_SETTLE_DELAY,
        seed: Optional[int] = None,
    ) -> None:
        self.game = Game(seats=SINGLE_PLAYER_SEATS, peekers=(PLAYER,))
        self.notify = notify
        self.schedule = schedule or loop_scheduler
        self.cpu_delay = cpu_delay
        self.peek_settle_delay = peek_settle_delay
        self.seed = seed
        self._pending: list[Any] = []

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict:
        """The game as the human sees it."""
        return self.game.to_dict(viewer=PLAYER)

    @property
    def drawn_card(self) -> Optional[Card]:
        """The card the human is holding, if any."""
        if self.game.drawn_by == PLAYER:
            return self.game.drawn_card
        return None

    def _attempt(self, action: Callable, *args) -> tuple[bool, Any]:
        """Run a rules action, turning a RuleViolation into an error notice."""
        try:
            return True, action(*args)
        except RuleViolation as e:
            logger.debug(f"Rejected {action.__name__}: {e}")
            self.notify(ERROR, str(e))
            return False, None

    def _defer(self, delay: float, callback: Callable[[], None]) -> None:
        def fire() -> None:
            if handle in self._pending:
                self._pending.remove(handle)
            callback()

        handle = self.schedule(delay, fire)
        self._pending.append(handle)

    def _cancel_pending(self) -> None:
        for handle in self._pending:
            cancel = getattr(handle, "cancel", None)
            if cancel:
                cancel()
        self._pending = []

    # -------------------------------------------------------------------------
    # Human actions
    # -------------------------------------------------------------------------

    def deal(self) -> dict:
        ok, _ = self._attempt(self.game.deal, self.seed)
        if ok:
            self.notify(SUCCESS, "Cards dealt! Peek at 2 of your cards.")
        return self.snapshot()

    def peek(self, position: int) -> dict:
        ok, card = self._attempt(self.game.peek, PLAYER, position)
        if ok:
            self.notify(INFO, f"You peeked at a {card.rank.value} of {card.suit.value}")
            if self.game.peeking_complete:
                self._defer(self.peek_settle_delay, self._begin_play)
        return self.snapshot()

    def draw_from_deck(self) -> dict:
        ok, card = self._attempt(self.game.draw_from_deck, PLAYER)
        if ok:
            self.notify(INFO, f"You drew a {card.rank.value} from the deck")
        return self.snapshot()

    def draw_from_discard(self) -> dict:
        ok, card = self._attempt(self.game.draw_from_discard, PLAYER)
        if ok:
            self.notify(INFO, f"You took a {card.rank.value} from the discard pile")
        return self.snapshot()

    def replace_card(self, position: int) -> dict:
        ok, _ = self._attempt(self.game.replace_card, PLAYER, position)
        if ok:
            self.notify(SUCCESS, "Card replaced and locked")
            self._after_player_lock()
        return self.snapshot()

    def discard_drawn_card(self) -> dict:
        ok, _ = self._attempt(self.game.discard_drawn_card, PLAYER)
        if ok:
            self.notify(INFO, "Card discarded! Flip one of your cards to lock it.")
        return self.snapshot()

    def lock_card_after_discard(self, position: int) -> dict:
        ok, _ = self._attempt(self.game.lock_card_after_discard, PLAYER, position)
        if ok:
            self.notify(SUCCESS, "Card locked")
            self._after_player_lock()
        return self.snapshot()

    def flip_card_directly(self, position: int) -> dict:
        ok, _ = self._attempt(self.game.flip_card_directly, PLAYER, position)
        if ok:
            self.notify(SUCCESS, "Card flipped and locked")
            self._after_player_lock()
        return self.snapshot()

    def new_round(self) -> dict:
        """Start the next round (or a new match once it is over) and deal."""
        was_over = self.game.phase == GamePhase.GAME_FINISHED
        ok, _ = self._attempt(self.game.new_round)
        if ok:
            self._cancel_pending()
            self.notify(INFO, "New game started!" if was_over else "New round started!")
            return self.deal()
        return self.snapshot()

    def reset_game(self) -> dict:
        """Abandon the match and return to the initial phase."""
        self._cancel_pending()
        self.game.reset()
        self.notify(INFO, "Game reset")
        return self.snapshot()

    # -------------------------------------------------------------------------
    # Deferred steps
    # -------------------------------------------------------------------------

    def _begin_play(self) -> None:
        ok, _ = self._attempt(self.game.begin_play)
        if ok:
            self.notify(SUCCESS, "Game started! Your turn.")

    def _after_player_lock(self) -> None:
        if self.game.phase in FINISHED_PHASES:
            self._announce_round_end()
        elif self.game.current_turn == CPU:
            self._defer(self.cpu_delay, self._cpu_turn)

    def _cpu_turn(self) -> None:
        """Play one CPU turn. Rules errors here are bugs and propagate."""
        if self.game.phase != GamePhase.PLAYING or self.game.current_turn != CPU:
            return

        hand = self.game.hands[CPU]

        if not self.game.deck.cards:
            position = first_unlocked_position(hand)
            self.game.flip_card_directly(CPU, position)
            logger.debug(f"CPU flipped position {position} (deck empty)")
            self.notify(INFO, "CPU flipped a card")
        else:
            drawn = self.game.draw_from_deck(CPU)
            decision = choose_move(hand, drawn)
            logger.debug(f"CPU decision: {decision.reason}")

            if decision.replace_position is not None:
                self.game.replace_card(CPU, decision.replace_position)
                self.notify(INFO, "CPU replaced a card")
            else:
                self.game.discard_drawn_card(CPU)
                self.game.lock_card_after_discard(CPU, decision.flip_position)
                self.notify(INFO, "CPU discarded the drawn card")

        if self.game.phase in FINISHED_PHASES:
            self._announce_round_end()

    def _announce_round_end(self) -> None:
        for seat, hand in self.game.hands.items():
            if is_four_of_a_kind(hand.cards):
                who = "You have" if seat == PLAYER else "CPU has"
                self.notify(INFO, f"{who} four of a kind!")

        scores = self.game.round_score
        self.notify(INFO, f"Round over! You scored {scores[PLAYER]}, CPU scored {scores[CPU]}")

        if self.game.phase == GamePhase.GAME_FINISHED:
            totals = self.game.game_score
            if PLAYER in self.game.winners():
                self.notify(SUCCESS, f"You win! Final score {totals[PLAYER]} to {totals[CPU]}")
            else:
                self.notify(INFO, f"CPU wins! Final score {totals[PLAYER]} to {totals[CPU]}")
