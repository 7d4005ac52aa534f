import time

from .board import COLUMNS, SimulationCancelled
from .events import MoveEvent, RoundCompleteEvent, FinishEvent
from .logic import DEALT

MAX_MOVES = 2000

# Below this many tableau cards a 12-card run plus one card could be collected,
# leaving fewer than ten cards to fill every column for a stock deal
RETAIN_CARDS = 22


class MoveVetoed(Exception):
    """
    Raised instead of undoing the previous move. `changed` tells whether the
    prepare-and-deal cycle run in its place altered the board.
    """
    def __init__(self, changed):
        super(MoveVetoed, self).__init__(changed)
        self.changed = changed


def run_length(cards, top=None):
    """
    Length of the same-suit descending run whose exposed end is cards[top].

    :param tuple[Card] cards: Column, bottom to top
    :param int top: Index of the run's exposed card, the column's top if None
    :rtype: int
    """
    if top is None:
        top = len(cards) - 1
    if top < 0:
        return 0
    length = 1
    while top - length >= 0 and cards[top - length].continues(cards[top - length + 1]):
        length += 1
    return length

def count_runs(cards):
    """
    Number of face-up runs (single out-of-sequence cards count as runs).
    """
    top = len(cards) - 1
    runs = 0
    while top >= 0 and cards[top].face_up:
        top -= run_length(cards, top)
        runs += 1
    return runs

def count_face_down(cards):
    return len([card for card in cards if not card.face_up])


class AutoPlayer(object):
    """
    Greedy rule-based player. Heuristics are tried in order and each makes at
    most one move (rearrange_marriage and prep_deal make a short fixed series);
    after any success the list is restarted from the top because the move may
    have exposed new opportunities. A round ends when a full pass finds nothing.
    """
    def __init__(self, logic, delay=0, cancel_event=None, max_moves=MAX_MOVES):
        """
        :param logic.SpiderLogic logic: Game state engine
        :param float delay: Seconds to wait before each move
        :param threading.Event cancel_event: Checked between moves
        :param int max_moves: Moves per game before giving up
        """
        self.logic = logic
        self.event_dispatch = logic.event_dispatch
        self.delay = delay
        self.cancel_event = cancel_event
        self.max_moves = max_moves

        self.heuristics = [self.marriage, self.sequence_marriage, self.split_sequence_marriage,
                           self.rearrange_marriage, self.different_suit_marriage,
                           self.different_suit_sequence_marriage, self.reveal_cards, self.prep_deal]
        self.reset()

    def reset(self):
        # (origin, destination, count, card exposed at destination)
        self.last_move = None
        self.moves = 0
        self.forcing = False

    def play(self):
        """
        Plays the dealt game to the end: a round for the initial deal and one
        after each stock deal.

        :rtype: bool
        :return: True if won
        """
        self.reset()
        self.logic.autoplaying = True
        try:
            round_number = 0
            while True:
                finished = self.play_round()
                self.event_dispatch.send(RoundCompleteEvent(round=round_number,
                                                            foundations=self.logic.foundation_count()))
                if not finished or self.logic.is_solved() or self.logic.stock_count() == 0:
                    break

                self.pause()
                if self.logic.deal_stock() != DEALT:
                    break
                round_number += 1
        finally:
            self.logic.autoplaying = False

        won = self.logic.is_solved()
        self.logic.cards_in_play()
        self.event_dispatch.send(FinishEvent(won=won))
        return won

    def play_round(self):
        """
        :rtype: bool
        :return: False if the move limit stopped the round
        """
        while self.moves < self.max_moves:
            if self.step() is None:
                return True
        self.logic.log("Move limit of %d reached." % self.max_moves, "info")
        return False

    def step(self):
        """
        One pass: the stalemate guard, then the first heuristic that changes
        the board.

        :rtype: str | None
        :return: Name of whatever acted, None if nothing could
        """
        if self.retain_cards():
            return "retain_cards"

        for heuristic in self.heuristics:
            try:
                if heuristic():
                    return heuristic.__name__
            except MoveVetoed as vetoed:
                if vetoed.changed:
                    return "prepare_and_deal"
        return None

    # Moves

    def move_cards(self, origin, dest, count):
        """
        Face-down exposed cards are turned over before and after the move.

        :rtype: bool
        :return: True if the move was made
        :raises MoveVetoed: The move would reverse the previous one
        """
        self.check_cancelled()
        if not self.forcing and self.is_reversal(origin, dest, count):
            self.logic.log("Moving %d card(s) from %d to %d would undo the last move." % (count, origin, dest))
            raise MoveVetoed(self.prepare_and_deal())

        self.face_up_cards()
        self.pause()
        moved = self.logic.select_and_move(origin, dest, count)
        self.face_up_cards()
        if moved:
            self.moves += 1
            self.last_move = (origin, dest, count, self.logic.top_of_column(dest))
            self.event_dispatch.send(MoveEvent(source=origin, dest=dest, num=count))
        return moved

    def is_reversal(self, origin, dest, count):
        if self.last_move is None:
            return False
        last_origin, last_dest, last_count, last_card = self.last_move
        return (origin == last_dest and dest == last_origin and count == last_count and
                self.logic.top_of_column(origin) is last_card)

    def prepare_and_deal(self):
        """
        :rtype: bool
        :return: True if cards were moved or dealt
        """
        stock = self.logic.stock_count()
        self.forcing = True
        try:
            prepared = self.prep_deal()
            # prep_deal may already have dealt
            dealt = self.logic.stock_count() < stock or self.logic.deal_stock() == DEALT
        finally:
            self.forcing = False
        return prepared or dealt

    def face_up_cards(self):
        for index in range(COLUMNS):
            self.logic.reveal(index)

    def pause(self):
        if self.delay > 0:
            if self.cancel_event is not None:
                self.cancel_event.wait(self.delay)
            else:
                time.sleep(self.delay)
        self.check_cancelled()

    def check_cancelled(self):
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise SimulationCancelled("Autoplay was cancelled after %d moves" % self.moves)

    # Board views

    def column(self, index):
        return self.logic.column(index)

    def top(self, index):
        return self.logic.top_of_column(index)

    def is_in_sequence(self, index):
        cards = self.column(index)
        return len(cards) >= 2 and cards[-2].continues(cards[-1])

    def is_in_order(self, index):
        """
        True if the exposed card sits on a face-up card one rank higher of a
        different suit.
        """
        cards = self.column(index)
        return (len(cards) >= 2 and cards[-2].face_up and cards[-2].can_stack(cards[-1]) and
                cards[-2].suit != cards[-1].suit)

    def on_face_down(self, index):
        cards = self.column(index)
        length = run_length(cards)
        return len(cards) > length and not cards[-1 - length].face_up

    def face_down_uncovered(self):
        return all(count_face_down(self.column(index)) == 0 for index in range(COLUMNS))

    def is_stack_taller(self, origin, dest, count):
        """
        True if the same-suit run the moved cards would join at `dest` is
        longer than the one they would leave behind at `origin`.
        """
        cards = self.column(origin)
        moving = cards[-count]
        origin_length = 0
        if len(cards) > count and cards[-count - 1].continues(moving):
            origin_length = run_length(cards, len(cards) - count - 1)

        dest_cards = self.column(dest)
        dest_length = 0
        if len(dest_cards) > 0 and dest_cards[-1].continues(moving):
            dest_length = run_length(dest_cards)

        return dest_length > origin_length

    def priority_column(self, rank, different_suit=False):
        """
        Column whose exposed card of `rank` should be married first, scanning
        right to left. A later column only wins with no more face-down cards
        and strictly fewer runs.

        :rtype: int | None
        """
        priority = None
        for index in range(COLUMNS - 1, -1, -1):
            card = self.top(index)
            if card is None or card.rank != rank or self.is_in_sequence(index):
                continue
            if different_suit and self.is_in_order(index):
                continue

            if priority is None:
                priority = index
            else:
                cards, best = self.column(index), self.column(priority)
                if count_face_down(cards) <= count_face_down(best) and count_runs(cards) < count_runs(best):
                    priority = index
        return priority

    # Heuristics

    def marriage(self):
        """
        Moves one exposed card onto an exposed card of the same suit one rank
        higher, Queens first.
        """
        for rank in range(12, 0, -1):
            origin = self.priority_column(rank)
            if origin is None:
                continue
            suit = self.top(origin).suit
            for dest in range(COLUMNS):
                dest_card = self.top(dest)
                if dest_card is not None and dest_card.rank == rank + 1 and dest_card.suit == suit:
                    if self.move_cards(origin, dest, 1):
                        return True
                    break
        return False

    def sequence_marriage(self):
        """
        Moves a whole exposed same-suit run onto a card of its suit one rank
        above the run's bottom card.
        """
        for rank in range(12, 0, -1):
            for origin in range(COLUMNS - 1, -1, -1):
                if not self.is_in_sequence(origin):
                    continue
                cards = self.column(origin)
                count = run_length(cards)
                if cards[-count].rank != rank:
                    continue

                suit = cards[-1].suit
                for dest in range(COLUMNS):
                    dest_card = self.top(dest)
                    if dest_card is not None and dest_card.rank == rank + 1 and dest_card.suit == suit:
                        if self.move_cards(origin, dest, count):
                            return True
                        break
        return False

    def split_sequence_marriage(self):
        """
        Splits the lower part off one same-suit run to extend another, when
        the receiving run ends up longer than what the donor keeps.
        """
        for receiver in range(COLUMNS):
            if not self.is_in_sequence(receiver):
                continue
            rank, suit = self.top(receiver).rank, self.top(receiver).suit

            for donor in range(COLUMNS - 1, -1, -1):
                if not self.is_in_sequence(donor):
                    continue
                cards = self.column(donor)
                if cards[-1].rank >= rank or cards[-1].suit != suit:
                    continue

                count = 1
                while (count < len(cards) and cards[-1 - count].rank < rank and
                       cards[-1 - count].continues(cards[-count])):
                    count += 1
                bottom = cards[-count]
                if bottom.rank == rank - 1 and bottom.suit == suit and self.is_stack_taller(donor, receiver, count):
                    if self.move_cards(donor, receiver, count):
                        return True
        return False

    def rearrange_marriage(self):
        """
        Parks a column's top run in an empty column so the run beneath can be
        married elsewhere, then puts the parked run back on the card that run
        uncovered.
        """
        for empty in range(COLUMNS):
            if self.top(empty) is not None:
                continue

            for origin in range(COLUMNS - 1, -1, -1):
                cards = self.column(origin)
                if count_runs(cards) < 2:
                    continue
                first = run_length(cards)
                second = run_length(cards, len(cards) - 1 - first)
                second_card = cards[-first - second]
                uncovered_rank = 0
                if len(cards) > first + second:
                    uncovered_rank = cards[-first - second - 1].rank
                if cards[-first].rank != uncovered_rank - 1:
                    continue

                for dest in range(COLUMNS):
                    dest_card = self.top(dest)
                    if dest in (origin, empty) or dest_card is None:
                        continue
                    if dest_card.rank == second_card.rank + 1 and dest_card.suit == second_card.suit:
                        if not self.move_cards(origin, empty, first):
                            return False
                        self.move_cards(origin, dest, second)
                        self.move_cards(empty, origin, first)
                        return True
        return False

    def different_suit_marriage(self):
        """
        As marriage, onto any suit. Cards already in a different-suit order
        are left where they are.
        """
        for rank in range(12, 0, -1):
            origin = self.priority_column(rank, different_suit=True)
            if origin is None:
                continue
            for dest in range(COLUMNS):
                dest_card = self.top(dest)
                if dest_card is not None and dest_card.rank == rank + 1:
                    if self.move_cards(origin, dest, 1):
                        return True
                    break
        return False

    def different_suit_sequence_marriage(self):
        """
        As sequence_marriage, onto any suit, unless the run already sits on a
        card one rank above it.
        """
        for rank in range(12, 0, -1):
            for origin in range(COLUMNS - 1, -1, -1):
                if not self.is_in_sequence(origin):
                    continue
                cards = self.column(origin)
                count = run_length(cards)
                hidden_rank = cards[-count - 1].rank if len(cards) > count else 0
                if cards[-count].rank != rank or hidden_rank == rank + 1:
                    continue

                for dest in range(COLUMNS):
                    dest_card = self.top(dest)
                    if dest_card is not None and dest_card.rank == rank + 1:
                        if self.move_cards(origin, dest, count):
                            return True
                        break
        return False

    def reveal_cards(self):
        """
        Moves the top run of the column with the fewest runs (then fewest
        face-down cards) into an empty column to uncover what lies beneath.
        """
        for empty in range(COLUMNS):
            if self.top(empty) is not None:
                continue

            priority = 0
            run_count = 0
            face_down_count = 0
            size = 0
            for index in range(COLUMNS):
                cards = self.column(index)
                if len(cards) == 0 or self.is_in_order(index):
                    continue

                face_down = count_face_down(cards)
                runs = count_runs(cards)
                length = run_length(cards)
                if len(cards) > length and not cards[-length - 1].can_stack(cards[-length]):
                    if size == 0 and runs > 1:
                        priority, face_down_count, run_count, size = index, face_down, runs, length
                    elif runs <= run_count and runs > 1 and face_down < face_down_count:
                        priority, face_down_count, run_count, size = index, face_down, runs, length

            if size > 0 and self.move_cards(priority, empty, size):
                return True
        return False

    def prep_deal(self):
        """
        Fills every empty column ahead of a stock deal, highest ranks first.
        While face-down cards remain, runs sitting on one are taken first;
        otherwise a run sitting on another run, and failing that all but the
        bottom card of a run. Deals straight away once every column is a
        single same-suit run with nothing face down.

        :rtype: bool
        :return: True if cards were moved or dealt
        """
        if self.logic.stock_count() == 0:
            return False

        prepared = False
        for empty in range(COLUMNS):
            if self.top(empty) is not None:
                continue

            if not self.face_down_uncovered():
                moved = self.uncover_face_down(empty)
            else:
                moved = self.lift_top_run(empty)
            if not moved:
                moved = self.split_top_run(empty)
            prepared = prepared or moved

        if self.is_dealable() and self.logic.deal_stock() == DEALT:
            prepared = True
        return prepared

    def uncover_face_down(self, empty):
        for on_face_down in (True, False):
            for rank in range(13, 0, -1):
                for index in range(COLUMNS - 1, -1, -1):
                    cards = self.column(index)
                    if len(cards) == 0 or self.on_face_down(index) != on_face_down:
                        continue
                    length = run_length(cards)
                    if (cards[-length].rank == rank and len(cards) > length and
                            not cards[-length - 1].can_stack(cards[-length])):
                        return self.move_cards(index, empty, length)
        return False

    def lift_top_run(self, empty):
        for rank in range(13, 0, -1):
            for index in range(COLUMNS - 1, -1, -1):
                if not self.is_in_sequence(index):
                    continue
                cards = self.column(index)
                length = run_length(cards)
                if (len(cards) > length and cards[-length].rank == rank and
                        not cards[-length - 1].can_stack(cards[-length])):
                    return self.move_cards(index, empty, length)
        return False

    def split_top_run(self, empty):
        for rank in range(13, 0, -1):
            for index in range(COLUMNS - 1, -1, -1):
                if not self.is_in_sequence(index):
                    continue
                cards = self.column(index)
                length = run_length(cards)
                if cards[-length].rank == rank:
                    return self.move_cards(index, empty, length - 1)
        return False

    def is_dealable(self):
        if not self.face_down_uncovered():
            return False
        for index in range(COLUMNS):
            cards = self.column(index)
            if run_length(cards) != len(cards):
                return False
        return True

    def retain_cards(self):
        """
        Deals from the stock while few cards are left on the tableau, so there
        are always enough to cover every column for the next deal.

        :rtype: bool
        :return: True if cards were moved or dealt
        """
        if self.logic.tableau_count() > RETAIN_CARDS or self.logic.stock_count() == 0:
            return False
        self.logic.log("Retaining cards: %d left on the tableau." % self.logic.tableau_count())
        return self.prepare_and_deal()
