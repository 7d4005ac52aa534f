import random

from . import events
from .board import (Tableau, Deck, DECK_SIZE, RUN_LENGTH, SUIT_MODES, InvalidSuitMode,
                    MalformedFoundationRun)
from .events import DealEvent, FoundationEvent, GameWonEvent, MessageEvent

DEALT = "dealt"
EMPTY_COLUMN = "empty_column"
STOCK_EXHAUSTED = "stock_exhausted"

class SpiderLogic(object):
    """
    The game state engine. Moves are split into a checked predicate and an
    unchecked mutator (can_remove_run/remove_run, can_place_run/place_run);
    callers always check first. select_and_move does both for interactive play.
    """
    def __init__(self, suit_mode=None, event_dispatch=None):
        """
        :param int suit_mode: 1, 2 or 4
        :param events.EventDispatch event_dispatch: Event Dispatch
        """
        self.table = Tableau()
        self.event_dispatch = event_dispatch or events.event_dispatch
        self.suit_mode = None
        self.autoplaying = False
        self.moves = 0
        if suit_mode is not None:
            self.set_suit_mode(suit_mode)

    def set_suit_mode(self, suit_mode):
        if suit_mode not in SUIT_MODES:
            raise InvalidSuitMode("%r is not a valid amount of suits to be played" % (suit_mode,))
        self.suit_mode = suit_mode

    def log(self, message, level="debug"):
        self.event_dispatch.send(MessageEvent(level=level, message=message))

    def new_game(self, suit_mode, seed=None):
        self.set_suit_mode(suit_mode)
        self.deal_game(seed)

    def deal_game(self, seed=None):
        """
        :param int seed: Shuffle seed, random if None
        """
        if self.suit_mode not in SUIT_MODES:
            raise InvalidSuitMode("Suit mode must be set before dealing")
        rng = random.Random(seed)
        self.table.setup(Deck.shuffle(Deck.build(self.suit_mode), rng))
        self.moves = 0
        self.log("Game dealt.")

    def load_state(self, state):
        """
        :param board.State state: Columns, foundations, stock bundles
        """
        self.table.state = state
        self.moves = 0

    def deal_stock(self):
        """
        Deals one face-up card from the next bundle onto every column.

        :rtype: str
        :return: DEALT, EMPTY_COLUMN or STOCK_EXHAUSTED
        """
        if any(len(column) == 0 for column in self.table.columns):
            self.log("You cannot deal from the stock whilst there are empty tableau stacks.")
            return EMPTY_COLUMN
        if self.table.stock_count == 0:
            self.log("The stock pile is empty.")
            return STOCK_EXHAUSTED

        bundle = self.table.stock[self.table.stock_count - 1]
        for column in self.table.columns:
            card = bundle.pop()
            card.turn_up()
            column.append(card)
        self.table.stock_count -= 1
        self.log("Stock dealt.")
        self.event_dispatch.send(DealEvent(remaining=self.table.stock_count))

        for colno in range(len(self.table.columns)):
            self.collect_foundation_run(colno)
        return DEALT

    def reveal(self, column):
        """
        Turns over the exposed card of a column if it is face down.

        :rtype: bool
        :return: True if a card was turned
        """
        card = self.table.get_card(column)
        if card is None or card.face_up:
            return False
        card.turn_up()
        return True

    def can_remove_run(self, column, count):
        """
        True if the top `count` cards are face up and descend by one in a
        single suit from the exposed card down.

        :param int column: Column
        :param int count: Cards to remove
        :rtype: bool
        """
        cards = self.table.get_column(column)
        if count < 1 or len(cards) < count:
            return False

        lower_card = None
        for card in reversed(cards[-count:]):
            if not card.face_up:
                return False
            if lower_card is not None and not card.continues(lower_card):
                return False
            lower_card = card
        return True

    def remove_run(self, column, count):
        """
        Unchecked; call can_remove_run first.

        :rtype: list[Card]
        :return: The removed cards, bottom to top
        """
        cards = self.table.get_column(column)
        group = cards[-count:]
        del cards[-count:]
        return group

    def can_place_run(self, group, column):
        """
        Suit is not checked: any group may go onto a face-up card one rank
        above the group's bottom card, or into an empty column.

        :param list[Card] group: Bottom to top
        :param int column: Destination
        :rtype: bool
        """
        dest_card = self.table.get_card(column)
        if dest_card is None:
            return True
        return len(group) > 0 and dest_card.face_up and dest_card.can_stack(group[0])

    def place_run(self, group, column):
        """
        :rtype: bool
        :return: True if the placement completed a foundation run
        """
        self.table.get_column(column).extend(group)
        return self.collect_foundation_run(column)

    def foundation_run_length(self, column):
        """
        Length of the same-suit run counted up from an exposed Ace, at most 13.
        """
        cards = self.table.get_column(column)
        if len(cards) == 0 or cards[-1].rank != 1 or not cards[-1].face_up:
            return 0

        length = 1
        while length < RUN_LENGTH and length < len(cards) and cards[-1 - length].continues(cards[-length]):
            length += 1
        return length

    def collect_foundation_run(self, column):
        """
        Moves a complete Ace..King run off the top of a column into the first
        empty foundation slot.

        :rtype: bool
        :return: True if a run was collected
        """
        if self.foundation_run_length(column) != RUN_LENGTH:
            return False

        group = self.remove_run(column, RUN_LENGTH)
        self.add_to_foundation(group)
        return True

    def add_to_foundation(self, group):
        """
        :param list[Card] group: King at the bottom, Ace on top
        """
        if len(group) != RUN_LENGTH:
            raise MalformedFoundationRun("The completed stack must have %d cards, not %d" % (RUN_LENGTH, len(group)))

        for slot, foundation in enumerate(self.table.foundations):
            if len(foundation) == 0:
                foundation.extend(reversed(group))
                break
        else:
            raise MalformedFoundationRun("No empty foundation slot for a completed run")

        self.log("Foundation stack formed.")
        self.event_dispatch.send(FoundationEvent(slot=slot, suit=group[0].suit))
        if self.is_solved() and not self.autoplaying:
            self.event_dispatch.send(GameWonEvent())

    def select_and_move(self, source, dest, num):
        """
        Interactive move of `num` cards. An illegal placement returns the cards
        to where they came from.

        :rtype: bool
        """
        self.table.get_column(dest) # bounds check
        if source == dest or not self.can_remove_run(source, num):
            return False

        group = self.remove_run(source, num)
        if not self.can_place_run(group, dest):
            self.table.get_column(source).extend(group)
            self.log("Illegal move.")
            return False

        self.place_run(group, dest)
        self.moves += 1
        self.log("%d card(s) moved from stack %d to stack %d." % (num, source, dest))
        return True

    def top_of_column(self, column):
        return self.table.get_card(column)

    def peek(self, column, depth=0):
        return self.table.get_card(column, depth)

    def column(self, column):
        """
        :rtype: tuple[Card]
        :return: Read-only copy, bottom to top
        """
        return tuple(self.table.get_column(column))

    def top_of_foundation(self, index):
        foundation = self.table.get_foundation(index)
        if len(foundation) == 0:
            return None
        return foundation[-1]

    def next_stock_card(self, index):
        bundle = self.table.get_bundle(index)
        if len(bundle) == 0:
            return None
        return bundle[-1]

    def tableau_count(self):
        return sum(len(column) for column in self.table.columns)

    def stock_count(self):
        return self.table.stock_count

    def stock_cards(self):
        return sum(len(bundle) for bundle in self.table.stock)

    def foundation_count(self):
        return len([slot for slot in self.table.foundations if len(slot) > 0])

    def cards_in_play(self):
        count = self.tableau_count() + self.foundation_count() * RUN_LENGTH + self.stock_cards()
        self.log("%d cards in play." % count)
        return count

    def is_intact(self):
        return self.cards_in_play() == DECK_SIZE

    def is_solved(self):
        return len(self.table.foundations[-1]) == RUN_LENGTH
