"""
Game rules for 4-Card Golf.

This module is the one rules implementation shared by the single-player
engine (local_game.py) and the multiplayer room authority (room.py,
handlers.py). It has no transport or timing dependencies: every action is a
synchronous method that either mutates the Game or raises RuleViolation
without touching anything.

4-Card Golf Rules Summary:
    - Each player holds 4 face-down cards in fixed positions 0-3
    - At the start of a round each peeking player privately looks at 2 cards
    - On your turn: draw from the deck or discard pile, then either replace
      one of your unlocked cards (locking it) or discard the drawn card and
      lock one of your cards in place; or lock a card without drawing
    - The round ends as soon as one hand is fully locked
    - Scores accumulate across rounds; reaching 100 ends the match and the
      lower (or equal) total wins

Phase flow:
    INITIAL -> PEEK -> PLAYING <-> FLIP_AFTER_DISCARD -> ROUND_FINISHED
    ROUND_FINISHED -> INITIAL (next round) or GAME_FINISHED (match over)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from cards import Card, Deck, hand_score
from constants import GAME_OVER_SCORE, HAND_SIZE, INITIAL_PEEKS

logger = logging.getLogger(__name__)

SINGLE_PLAYER_SEATS = ("player", "cpu")
MULTIPLAYER_SEATS = ("player1", "player2")


class RuleViolation(Exception):
    """An action was refused because one of its preconditions does not hold."""


class InvariantError(RuntimeError):
    """The game reached a state the phase machine should make impossible."""


class GamePhase(Enum):
    """
    Phases of a Golf round.

    Flow: INITIAL -> PEEK -> PLAYING <-> FLIP_AFTER_DISCARD -> ROUND_FINISHED
    After the score threshold: GAME_FINISHED
    """

    INITIAL = "initial"                        # Waiting for the deal
    PEEK = "peek"                              # Players privately viewing 2 cards
    PLAYING = "playing"                        # Normal turns
    FLIP_AFTER_DISCARD = "flip-after-discard"  # Discarded a draw, must lock a card
    ROUND_FINISHED = "round-finished"          # Round scored, next round pending
    GAME_FINISHED = "game-finished"            # Threshold crossed, needs full reset


FINISHED_PHASES = (GamePhase.ROUND_FINISHED, GamePhase.GAME_FINISHED)


@dataclass
class Hand:
    """
    One player's four card slots.

    Attributes:
        cards: Card per position, None while the slot is empty.
        revealed: Positions permanently face-up (locked).
        peeked: Positions privately viewed by the owner during the peek phase.
    """

    cards: list[Optional[Card]] = field(default_factory=lambda: [None] * HAND_SIZE)
    revealed: list[bool] = field(default_factory=lambda: [False] * HAND_SIZE)
    peeked: list[bool] = field(default_factory=lambda: [False] * HAND_SIZE)

    def all_revealed(self) -> bool:
        """Check if every position is locked."""
        return all(self.revealed)

    def hidden_positions(self) -> list[int]:
        """Positions that are not locked yet."""
        return [pos for pos, locked in enumerate(self.revealed) if not locked]

    def score(self) -> Optional[int]:
        return hand_score(self.cards)

    def to_dict(self, visible: Callable[[int], bool]) -> dict:
        """
        Serialize the hand, hiding cards at positions ``visible`` rejects.

        Empty slots serialize as None, hidden cards as ``{"hidden": True}``.
        """
        cards = []
        for pos, card in enumerate(self.cards):
            if card is None:
                cards.append(None)
            elif visible(pos):
                cards.append(card.to_dict())
            else:
                cards.append({"hidden": True})
        return {
            "cards": cards,
            "revealedCards": list(self.revealed),
            "peekedCards": list(self.peeked),
        }


def _require_position(position) -> int:
    if isinstance(position, bool) or not isinstance(position, int) or not 0 <= position < HAND_SIZE:
        raise RuleViolation("Invalid card position")
    return position


@dataclass
class Game:
    """
    State and rules of one two-player Golf match.

    Attributes:
        seats: The two seat names, first seat deals first and moves first.
        peekers: Seats that peek at the start of each round, in order.
        hands: Hand per seat.
        deck: The draw pile.
        discard_pile: Face-up discarded cards, last element is the top.
        current_turn: Seat whose move it is (or who is peeking).
        phase: Current phase of the round.
        round_score: Score per seat of the last finished round.
        game_score: Cumulative score per seat across the match.
        peeks_remaining: Peek budget left for the seat currently peeking.
        drawn_card: Card held outside every pile, pending resolution.
        drawn_by: Seat holding ``drawn_card``.
        current_round: Round number within the match (1-indexed).
    """

    seats: tuple[str, str] = MULTIPLAYER_SEATS
    peekers: tuple[str, ...] = MULTIPLAYER_SEATS
    game_over_score: int = GAME_OVER_SCORE
    initial_peeks: int = INITIAL_PEEKS
    hands: dict[str, Hand] = field(default_factory=dict)
    deck: Deck = field(default_factory=Deck)
    discard_pile: list[Card] = field(default_factory=list)
    current_turn: str = ""
    phase: GamePhase = GamePhase.INITIAL
    round_score: dict[str, int] = field(default_factory=dict)
    game_score: dict[str, int] = field(default_factory=dict)
    peeks_remaining: int = 0
    drawn_card: Optional[Card] = None
    drawn_by: Optional[str] = None
    current_round: int = 1

    def __post_init__(self) -> None:
        if not self.hands:
            self.hands = {seat: Hand() for seat in self.seats}
        if not self.round_score:
            self.round_score = {seat: 0 for seat in self.seats}
        if not self.game_score:
            self.game_score = {seat: 0 for seat in self.seats}
        if not self.current_turn:
            self.current_turn = self.seats[0]
        if not self.peeks_remaining:
            self.peeks_remaining = self.initial_peeks

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def opponent_of(self, seat: str) -> str:
        """The other seat."""
        first, second = self.seats
        return second if seat == first else first

    def discard_top(self) -> Optional[Card]:
        """Get the top card of the discard pile (if any)."""
        if self.discard_pile:
            return self.discard_pile[-1]
        return None

    @property
    def peeking_complete(self) -> bool:
        """True once the last peeker has spent their budget."""
        return self.phase == GamePhase.PEEK and self.peeks_remaining == 0

    def winners(self) -> list[str]:
        """
        Seats that won the match: lower or equal cumulative score.

        Empty until the match is finished; a tie yields both seats.
        """
        if self.phase != GamePhase.GAME_FINISHED:
            return []
        return [
            seat for seat in self.seats
            if self.game_score[seat] <= self.game_score[self.opponent_of(seat)]
        ]

    def card_census(self) -> list[Card]:
        """Every card currently in play: deck, discard pile, hands and drawn slot."""
        cards = list(self.deck.cards) + list(self.discard_pile)
        for hand in self.hands.values():
            cards.extend(card for card in hand.cards if card is not None)
        if self.drawn_card is not None:
            cards.append(self.drawn_card)
        return cards

    # -------------------------------------------------------------------------
    # Precondition checks
    # -------------------------------------------------------------------------

    def _require_seat(self, seat: str) -> Hand:
        if seat not in self.hands:
            raise RuleViolation(f"Unknown seat: {seat}")
        return self.hands[seat]

    def _require_phase(self, message: str, *phases: GamePhase) -> None:
        if self.phase not in phases:
            raise RuleViolation(message)

    def _require_turn(self, seat: str) -> Hand:
        hand = self._require_seat(seat)
        if self.current_turn != seat:
            raise RuleViolation("It's not your turn")
        return hand

    def _require_unlocked(self, hand: Hand, position) -> int:
        position = _require_position(position)
        if hand.revealed[position]:
            raise RuleViolation("That card is already locked")
        return position

    def _require_nothing_drawn(self) -> None:
        if self.drawn_card is not None:
            raise RuleViolation("Resolve your drawn card first")

    def _require_holding(self, seat: str) -> Card:
        if self.drawn_card is None or self.drawn_by != seat:
            raise RuleViolation("Draw a card first")
        return self.drawn_card

    # -------------------------------------------------------------------------
    # Round setup
    # -------------------------------------------------------------------------

    def deal(self, seed: Optional[int] = None) -> None:
        """
        Shuffle a fresh deck, deal 4 cards to each hand alternately and
        seed the discard pile with one card.

        Args:
            seed: Optional shuffle seed for deterministic deals.
        """
        self._require_phase("Cards have already been dealt", GamePhase.INITIAL)

        self.deck = Deck(seed)
        self.hands = {seat: Hand() for seat in self.seats}
        self.discard_pile = []
        self.drawn_card = None
        self.drawn_by = None

        for pos in range(HAND_SIZE):
            for seat in self.seats:
                self.hands[seat].cards[pos] = self.deck.draw()

        self.discard_pile.append(self.deck.draw())
        self.peeks_remaining = self.initial_peeks

        if self.peekers and self.initial_peeks > 0:
            self.current_turn = self.peekers[0]
            self.phase = GamePhase.PEEK
        else:
            self.current_turn = self.seats[0]
            self.phase = GamePhase.PLAYING

        logger.debug(f"Round {self.current_round} dealt, discard top {self.discard_top()}")

    def peek(self, seat: str, position: int) -> Card:
        """
        Privately view one of your own cards during the peek phase.

        When the peeking seat spends its last peek, the next peeker (if
        any) gets a fresh budget. After the last peeker, begin_play()
        starts the turns.

        Returns:
            The peeked card.
        """
        self._require_phase("You can only peek at the start of a round", GamePhase.PEEK)
        hand = self._require_turn(seat)
        if self.peeks_remaining <= 0:
            raise RuleViolation("No peeks remaining")
        position = _require_position(position)
        if hand.peeked[position]:
            raise RuleViolation("You already peeked at that card")

        hand.peeked[position] = True
        self.peeks_remaining -= 1

        if self.peeks_remaining == 0 and seat in self.peekers:
            index = self.peekers.index(seat)
            if index + 1 < len(self.peekers):
                self.current_turn = self.peekers[index + 1]
                self.peeks_remaining = self.initial_peeks

        return hand.cards[position]

    def begin_play(self) -> None:
        """Leave the peek phase once every peeker is done."""
        if not self.peeking_complete:
            raise RuleViolation("Peeking is not finished")
        self.phase = GamePhase.PLAYING
        self.current_turn = self.seats[0]

    # -------------------------------------------------------------------------
    # Turn Actions
    # -------------------------------------------------------------------------

    def draw_from_deck(self, seat: str) -> Card:
        """Take the top card of the deck into the drawn slot."""
        self._require_phase("You can only draw during play", GamePhase.PLAYING)
        self._require_turn(seat)
        self._require_nothing_drawn()
        if not self.deck.cards:
            raise RuleViolation("Deck is empty!")

        self.drawn_card = self.deck.draw()
        self.drawn_by = seat
        return self.drawn_card

    def draw_from_discard(self, seat: str) -> Card:
        """Take the top card of the discard pile into the drawn slot."""
        self._require_phase("You can only draw during play", GamePhase.PLAYING)
        self._require_turn(seat)
        self._require_nothing_drawn()
        if not self.discard_pile:
            raise RuleViolation("Discard pile is empty!")

        self.drawn_card = self.discard_pile.pop()
        self.drawn_by = seat
        return self.drawn_card

    def replace_card(self, seat: str, position: int) -> Optional[Card]:
        """
        Put the drawn card into an unlocked position and lock it.

        The displaced card goes on top of the discard pile.

        Returns:
            The displaced card.
        """
        self._require_phase("You can only replace a card during play", GamePhase.PLAYING)
        hand = self._require_turn(seat)
        drawn = self._require_holding(seat)
        position = self._require_unlocked(hand, position)

        old_card = hand.cards[position]
        hand.cards[position] = drawn
        hand.revealed[position] = True
        if old_card is not None:
            self.discard_pile.append(old_card)
        self.drawn_card = None
        self.drawn_by = None

        self._finish_turn(seat)
        return old_card

    def discard_drawn_card(self, seat: str) -> Card:
        """
        Discard the drawn card. The same seat must then lock one of its
        cards with lock_card_after_discard().
        """
        self._require_phase("You can only discard during play", GamePhase.PLAYING)
        self._require_turn(seat)
        drawn = self._require_holding(seat)

        self.discard_pile.append(drawn)
        self.drawn_card = None
        self.drawn_by = None
        self.phase = GamePhase.FLIP_AFTER_DISCARD
        return drawn

    def lock_card_after_discard(self, seat: str, position: int) -> Card:
        """Lock one of your cards after discarding a draw, ending the turn."""
        self._require_phase("You must discard a drawn card before flipping", GamePhase.FLIP_AFTER_DISCARD)
        hand = self._require_turn(seat)
        position = self._require_unlocked(hand, position)

        hand.revealed[position] = True
        self.phase = GamePhase.PLAYING

        self._finish_turn(seat)
        return hand.cards[position]

    def flip_card_directly(self, seat: str, position: int) -> Card:
        """Lock one of your cards without drawing, ending the turn."""
        self._require_phase("You can only flip a card during play", GamePhase.PLAYING)
        hand = self._require_turn(seat)
        self._require_nothing_drawn()
        position = self._require_unlocked(hand, position)

        hand.revealed[position] = True

        self._finish_turn(seat)
        return hand.cards[position]

    # -------------------------------------------------------------------------
    # Turn & Round Flow (Internal)
    # -------------------------------------------------------------------------

    def _finish_turn(self, seat: str) -> None:
        """After a locking action: end the round or pass the turn."""
        if any(hand.all_revealed() for hand in self.hands.values()):
            self._end_round()
        else:
            self.current_turn = self.opponent_of(seat)

    def _end_round(self) -> None:
        """
        Score both hands, add them to the cumulative totals and decide
        whether the match is over.

        Raises:
            InvariantError: If a hand is incomplete at round end.
        """
        scores = {}
        for seat, hand in self.hands.items():
            score = hand.score()
            if score is None:
                raise InvariantError(f"Cannot score incomplete hand for {seat}")
            scores[seat] = score

        self.round_score = scores
        for seat, score in scores.items():
            self.game_score[seat] += score

        if any(total >= self.game_over_score for total in self.game_score.values()):
            self.phase = GamePhase.GAME_FINISHED
        else:
            self.phase = GamePhase.ROUND_FINISHED

        logger.debug(f"Round {self.current_round} over: round={scores} total={self.game_score}")

    def new_round(self) -> None:
        """
        Start the next round after scoring, or reset everything once the
        match is over.
        """
        if self.phase == GamePhase.GAME_FINISHED:
            self.reset()
            return
        self._require_phase("The round is still in progress", GamePhase.ROUND_FINISHED)
        self.current_round += 1
        self._reset_round()

    def reset(self) -> None:
        """Full reset: new match, cumulative scores back to zero."""
        self.game_score = {seat: 0 for seat in self.seats}
        self.current_round = 1
        self._reset_round()

    def _reset_round(self) -> None:
        self.hands = {seat: Hand() for seat in self.seats}
        self.deck = Deck()
        self.discard_pile = []
        self.current_turn = self.seats[0]
        self.phase = GamePhase.INITIAL
        self.round_score = {seat: 0 for seat in self.seats}
        self.peeks_remaining = self.initial_peeks
        self.drawn_card = None
        self.drawn_by = None

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self, viewer: Optional[str] = None) -> dict:
        """
        Build a snapshot of the game for one recipient.

        With a viewer, cards that viewer may not know are hidden: their own
        cards unless locked or peeked, the opponent's cards unless locked,
        and the drawn card unless they hold it. Once the round is over every
        hand is shown. Without a viewer nothing is hidden (server-side use).
        The deck is always sent as a count only.

        Args:
            viewer: Seat receiving the snapshot, or None for a full view.

        Returns:
            JSON-serializable dict.
        """
        reveal_all = viewer is None or self.phase in FINISHED_PHASES

        state = {}
        for seat, hand in self.hands.items():
            if reveal_all:
                visible = lambda pos: True
            elif seat == viewer:
                visible = lambda pos, h=hand: h.revealed[pos] or h.peeked[pos]
            else:
                visible = lambda pos, h=hand: h.revealed[pos]
            state[f"{seat}Hand"] = hand.to_dict(visible)

        show_drawn = self.drawn_card is not None and (viewer is None or viewer == self.drawn_by)

        state.update({
            "gamePhase": self.phase.value,
            "currentTurn": self.current_turn,
            "peeksRemaining": self.peeks_remaining,
            "deckCount": self.deck.cards_remaining(),
            "discardPile": [card.to_dict() for card in self.discard_pile],
            "drawnCard": self.drawn_card.to_dict() if show_drawn else None,
            "drawnBy": self.drawn_by,
            "roundScore": dict(self.round_score),
            "gameScore": dict(self.game_score),
            "currentRound": self.current_round,
            "winners": self.winners(),
        })
        return state
