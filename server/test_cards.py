"""
Test suite for cards, deck and hand scoring.

Covers:
- Card point values (A=11, 2=0, J=0, Q/K=10, 3-10 face value)
- Deck composition and deterministic shuffling
- Pair cancellation scoring and four of a kind

Run with: pytest test_cards.py -v
"""

import itertools

import pytest

from cards import RANK_VALUES, Card, Deck, Rank, Suit, card_value, hand_score, is_four_of_a_kind


def make_hand(*ranks: Rank) -> list[Card]:
    suits = itertools.cycle(Suit)
    return [Card(next(suits), rank) for rank in ranks]


# =============================================================================
# Card Value Tests
# =============================================================================

class TestCardValues:
    """Verify point values for every rank."""

    def test_ace_worth_11(self):
        assert RANK_VALUES[Rank.ACE] == 11

    def test_two_and_jack_worth_0(self):
        assert card_value(Rank.TWO) == 0
        assert card_value(Rank.JACK) == 0

    def test_queen_and_king_worth_10(self):
        assert card_value(Rank.QUEEN) == 10
        assert card_value(Rank.KING) == 10

    def test_three_through_ten_face_value(self):
        for rank in (Rank.THREE, Rank.FOUR, Rank.FIVE, Rank.SIX,
                     Rank.SEVEN, Rank.EIGHT, Rank.NINE, Rank.TEN):
            assert card_value(rank) == int(rank.value)

    def test_card_value_method(self):
        assert Card(Suit.SPADES, Rank.QUEEN).value() == 10


# =============================================================================
# Card identity
# =============================================================================

class TestCard:

    def test_generated_id_names_suit_and_rank(self):
        card = Card(Suit.HEARTS, Rank.SEVEN)
        assert card.id.startswith("hearts-7-")

    def test_ids_differ_for_equal_cards(self):
        assert Card(Suit.HEARTS, Rank.SEVEN).id != Card(Suit.HEARTS, Rank.SEVEN).id

    def test_explicit_id_kept(self):
        assert Card(Suit.CLUBS, Rank.ACE, id="fixed").id == "fixed"

    def test_to_dict_shape(self):
        card = Card(Suit.CLUBS, Rank.TEN, id="c10")
        assert card.to_dict() == {"suit": "clubs", "rank": "10", "id": "c10"}


# =============================================================================
# Deck
# =============================================================================

class TestDeck:

    def test_full_deck_has_52_distinct_cards(self):
        deck = Deck()
        assert len(deck) == 52
        assert len({(c.suit, c.rank) for c in deck.cards}) == 52
        assert len({c.id for c in deck.cards}) == 52

    def test_same_seed_same_order(self):
        first = [(c.suit, c.rank) for c in Deck(seed=7).cards]
        second = [(c.suit, c.rank) for c in Deck(seed=7).cards]
        assert first == second

    def test_draw_takes_from_top(self):
        deck = Deck(seed=1)
        top = deck.cards[-1]
        assert deck.draw() is top
        assert deck.cards_remaining() == 51

    def test_draw_from_empty_deck_returns_none(self):
        deck = Deck()
        deck.cards = []
        assert deck.draw() is None


# =============================================================================
# Hand scoring
# =============================================================================

class TestHandScore:
    """Pair cancellation: each rank counts value * (count % 2)."""

    def test_all_distinct_sums_values(self):
        hand = make_hand(Rank.ACE, Rank.FIVE, Rank.KING, Rank.TWO)
        assert hand_score(hand) == 11 + 5 + 10 + 0

    def test_pair_cancels(self):
        hand = make_hand(Rank.NINE, Rank.NINE, Rank.THREE, Rank.FOUR)
        assert hand_score(hand) == 7

    def test_two_pairs_score_zero(self):
        assert hand_score(make_hand(Rank.ACE, Rank.ACE, Rank.FIVE, Rank.FIVE)) == 0

    def test_three_of_a_kind_counts_once(self):
        assert hand_score(make_hand(Rank.ACE, Rank.FIVE, Rank.FIVE, Rank.FIVE)) == 16

    def test_four_of_a_kind_scores_zero(self):
        for rank in Rank:
            assert hand_score(make_hand(rank, rank, rank, rank)) == 0

    def test_score_independent_of_order(self):
        hand = make_hand(Rank.QUEEN, Rank.SEVEN, Rank.QUEEN, Rank.ACE)
        scores = {hand_score(list(order)) for order in itertools.permutations(hand)}
        assert scores == {18}

    def test_worst_hand(self):
        assert hand_score(make_hand(Rank.ACE, Rank.KING, Rank.QUEEN, Rank.TEN)) == 41

    @pytest.mark.parametrize("cards", [
        [],
        make_hand(Rank.ACE, Rank.TWO, Rank.THREE),
        make_hand(Rank.ACE, Rank.TWO, Rank.THREE) + [None],
    ])
    def test_incomplete_hand_has_no_score(self, cards):
        assert hand_score(cards) is None


class TestFourOfAKind:

    def test_detects_quads(self):
        assert is_four_of_a_kind(make_hand(Rank.SIX, Rank.SIX, Rank.SIX, Rank.SIX))

    def test_three_of_a_kind_is_not_quads(self):
        assert not is_four_of_a_kind(make_hand(Rank.SIX, Rank.SIX, Rank.SIX, Rank.ACE))

    def test_incomplete_hand_is_not_quads(self):
        assert not is_four_of_a_kind(make_hand(Rank.SIX, Rank.SIX, Rank.SIX) + [None])
