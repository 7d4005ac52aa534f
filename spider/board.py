import copy
import random

from collections import namedtuple

State = namedtuple('State', ['columns', 'foundations', 'stock'])

SUITS = ("s", "h", "c", "d")
SUIT_MODES = (1, 2, 4)

# Suit of each of the eight 13-card runs in a two-pack deck
SUIT_PARTITIONS = {
    1: ["s"] * 8,
    2: ["s"] * 4 + ["h"] * 4,
    4: ["c", "c", "s", "s", "h", "h", "d", "d"],
}

COLUMNS = 10
FOUNDATIONS = 8
STOCK_BUNDLES = 5
RUN_LENGTH = 13
DECK_SIZE = 104

names = {1: "A", 11: "J", 12: "Q", 13: "K"}


class SpiderError(Exception):
    pass

class InvalidRank(SpiderError, ValueError):
    pass

class InvalidSuit(SpiderError, ValueError):
    pass

class InvalidSuitMode(SpiderError, ValueError):
    pass

class IndexOutOfRange(SpiderError, IndexError):
    pass

class MalformedFoundationRun(SpiderError):
    pass

class SimulationCancelled(SpiderError):
    pass


class Card(object):
    def __init__(self, rank, suit, face_up=False):
        """
        :param int rank: Rank, 1 (Ace) to 13 (King)
        :param str suit: One of s, h, c, d
        :param bool face_up: Orientation
        """
        if isinstance(rank, bool) or not isinstance(rank, int) or not 1 <= rank <= 13:
            raise InvalidRank("%r is not a valid rank" % (rank,))
        if suit not in SUITS:
            raise InvalidSuit("%r is not a valid suit" % (suit,))
        self._rank = rank
        self._suit = suit
        self.face_up = face_up

    @property
    def rank(self):
        return self._rank

    @property
    def suit(self):
        return self._suit

    def turn_up(self):
        self.face_up = True

    # Can card be placed onto self?
    def can_stack(self, card):
        """
        :param Card card:
        :rtype: bool
        """
        return self.rank == card.rank + 1

    def continues(self, card):
        """
        True if self sits directly under card in a same-suit run.

        :param Card card:
        :rtype: bool
        """
        return self.can_stack(card) and self.suit == card.suit and self.face_up

    @classmethod
    def parse(cls, text, face_up=True):
        """
        :param str text: e.g. "Qs", "10h", "As"
        :rtype: Card
        """
        rank, suit = text[:-1], text[-1]
        for value, name in names.items():
            if rank == name:
                rank = value
                break
        else:
            try:
                rank = int(rank)
            except ValueError:
                raise InvalidRank("%r is not a valid rank" % (rank,))
        return cls(rank, suit, face_up)

    def __str__(self):
        return "%s%s" % (names.get(self.rank, self.rank), self.suit)

    def __repr__(self):
        return "Card(%s%s)" % (self, "" if self.face_up else ", down")


class Deck(object):
    @staticmethod
    def build(suit_mode):
        """
        Two packs, unshuffled, one 1..13 run per partition entry.

        :param int suit_mode: 1, 2 or 4
        :rtype: list[Card]
        """
        if suit_mode not in SUIT_PARTITIONS:
            raise InvalidSuitMode("%r is not a valid amount of suits to be played" % (suit_mode,))
        return [Card(rank, suit) for suit in SUIT_PARTITIONS[suit_mode] for rank in range(1, 14)]

    @staticmethod
    def shuffle(cards, rng=random):
        """
        Removes a random remaining card and pushes it until none are left.
        The returned list is used as a stack: the last element is dealt first.

        :param list[Card] cards: Consumed
        :param random.Random rng:
        :rtype: list[Card]
        """
        shuffled = []
        while len(cards) > 0:
            shuffled.append(cards.pop(rng.randrange(len(cards))))
        return shuffled


class Tableau(object):
    def __init__(self):
        self.clear()

    def clear(self):
        self.columns = [[] for _ in range(COLUMNS)]
        """:type: list[list[Card]]"""
        self.foundations = [[] for _ in range(FOUNDATIONS)]
        """:type: list[list[Card]]"""
        self.stock = [[] for _ in range(STOCK_BUNDLES)]
        """:type: list[list[Card]]"""
        self.stock_count = 0

    def setup(self, cards):
        """
        Deals a shuffled 104-card stack: six cards to columns 0-3, five to the
        rest, then five bundles of ten.

        :param list[Card] cards: Shuffled stack, consumed from the end
        """
        self.clear()
        for colno, column in enumerate(self.columns):
            for _ in range(6 if colno < 4 else 5):
                column.append(cards.pop())
            column[-1].turn_up()

        for bundle in self.stock:
            for _ in range(COLUMNS):
                bundle.append(cards.pop())
            self.stock_count += 1

    @property
    def state(self):
        return State(columns=copy.deepcopy(self.columns),
                     foundations=copy.deepcopy(self.foundations),
                     stock=copy.deepcopy(self.stock))

    @state.setter
    def state(self, state):
        columns = [list(column) for column in state.columns]
        foundations = [list(slot) for slot in state.foundations or []]
        stock = [list(bundle) for bundle in state.stock or []]
        if len(columns) != COLUMNS:
            raise IndexOutOfRange("A tableau has %d columns, not %d" % (COLUMNS, len(columns)))
        if len(foundations) > FOUNDATIONS or len(stock) > STOCK_BUNDLES:
            raise IndexOutOfRange("Too many foundation slots or stock bundles")

        self.columns = columns
        self.foundations = foundations + [[] for _ in range(FOUNDATIONS - len(foundations))]
        self.stock = stock + [[] for _ in range(STOCK_BUNDLES - len(stock))]
        self.stock_count = len([bundle for bundle in self.stock if len(bundle) > 0])

    def get_column(self, index):
        """
        :param int index:
        :rtype: list[Card]
        """
        if not isinstance(index, int) or not 0 <= index < COLUMNS:
            raise IndexOutOfRange("%r is not a valid tableau index" % (index,))
        return self.columns[index]

    def get_foundation(self, index):
        if not isinstance(index, int) or not 0 <= index < FOUNDATIONS:
            raise IndexOutOfRange("%r is not a valid foundation index" % (index,))
        return self.foundations[index]

    def get_bundle(self, index):
        if not isinstance(index, int) or not 0 <= index < STOCK_BUNDLES:
            raise IndexOutOfRange("%r is not a valid stock index" % (index,))
        return self.stock[index]

    def get_card(self, index, depth=0):
        """
        Card `depth` places below the exposed card of a column.

        :param int index: Column
        :param int depth: 0 is the exposed card
        :rtype: Card | None
        """
        column = self.get_column(index)
        if depth < 0 or depth >= len(column):
            return None
        return column[-1 - depth]

    def __str__(self):
        rows = []
        for i in range(self.height()):
            row = []
            for column in self.columns:
                if i >= len(column):
                    row.append("   ")
                elif column[i].face_up:
                    row.append("%3s" % column[i])
                else:
                    row.append(" ##")
            rows.append(" ".join(row))
        return "\n".join(rows)

    def height(self):
        return max([len(x) for x in self.columns])
