import pytest

from spider.board import Card, State, COLUMNS, RUN_LENGTH
from spider.events import EventDispatch
from spider.logic import SpiderLogic


def parse_cards(text, face_up=True):
    """
    "#Ac 9h 4s" -> [Ac face down, 9h, 4s], bottom to top
    """
    cards = []
    for token in text.split():
        if token.startswith("#"):
            cards.append(Card.parse(token[1:], face_up=False))
        else:
            cards.append(Card.parse(token, face_up=face_up))
    return cards


class Recorder(object):
    def __init__(self, dispatch, event_types):
        self.events = []
        dispatch.register(self.record, event_types)

    def record(self, event):
        self.events.append(event)

    def of_type(self, name):
        return [event for event in self.events if type(event).__name__ == name]


@pytest.fixture
def dispatch():
    return EventDispatch()


@pytest.fixture
def layout(dispatch):
    """
    Builds an engine from column strings. Stock bundles are dealt face down,
    the last bundle first; `foundations` is a number of filled slots.
    """
    def load(columns, stock=(), foundations=0, suit_mode=4):
        columns = list(columns) + [""] * (COLUMNS - len(columns))
        logic = SpiderLogic(suit_mode, dispatch)
        logic.load_state(State(
            columns=[parse_cards(column) for column in columns],
            foundations=[[Card(rank, "s", True) for rank in range(1, RUN_LENGTH + 1)] for _ in range(foundations)],
            stock=[parse_cards(bundle, face_up=False) for bundle in stock]))
        return logic
    return load
