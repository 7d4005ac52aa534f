import random
import threading

from collections import namedtuple

from .board import SimulationCancelled
from .events import MessageEvent, SimulationFinishedEvent
from .solver import AutoPlayer, MAX_MOVES


class SimulationResult(namedtuple('SimulationResult', ['iterations', 'wins', 'losses'])):
    __slots__ = ()

    @property
    def win_percentage(self):
        played = self.wins + self.losses
        if played == 0:
            return 0.0
        return 100.0 * self.wins / played


class SimulationRunner(object):
    """
    Deals and autoplays a number of games in a row, on the calling thread
    (run) or a background one (start). Progress and the final tally go out
    through the engine's event dispatch.
    """
    def __init__(self, logic, delay=0, seed=None, max_moves=MAX_MOVES):
        """
        :param logic.SpiderLogic logic: Engine the games are dealt into
        :param float delay: Seconds to wait before each move
        :param int seed: Makes the sequence of shuffles reproducible
        :param int max_moves: Moves per game before it is given up as lost
        """
        if delay < 0:
            raise ValueError("Delay must not be negative, got %r" % (delay,))
        self.logic = logic
        self.event_dispatch = logic.event_dispatch
        self.delay = delay
        self.seed = seed
        self.cancel_event = threading.Event()
        self.player = AutoPlayer(logic, delay=delay, cancel_event=self.cancel_event, max_moves=max_moves)
        self.thread = None
        self.result = None
        """:type: SimulationResult"""
        self.error = None

    def run(self, iterations, suit_mode):
        """
        Plays on the calling thread. A cancel left over from an earlier run
        is discarded.

        :param int iterations: Games to play
        :param int suit_mode: 1, 2 or 4
        :rtype: SimulationResult
        """
        self.cancel_event.clear()
        return self.play_games(iterations, suit_mode)

    def play_games(self, iterations, suit_mode):
        if not isinstance(iterations, int) or iterations < 0:
            raise ValueError("%r is not a valid number of iterations" % (iterations,))
        self.logic.set_suit_mode(suit_mode)

        rng = random.Random(self.seed)
        wins = losses = 0
        for game in range(iterations):
            self.logic.deal_game(rng.getrandbits(32))
            try:
                won = self.player.play()
            except SimulationCancelled:
                self.log("Simulation cancelled during game %d." % (game + 1), "info")
                break

            if won:
                wins += 1
            else:
                losses += 1
            self.log("Game %d %s." % (game + 1, "won" if won else "lost"), "info")

        self.result = SimulationResult(iterations=wins + losses, wins=wins, losses=losses)
        self.event_dispatch.send(SimulationFinishedEvent(*self.result))
        return self.result

    def start(self, iterations, suit_mode):
        self.cancel_event.clear()
        self.error = None
        self.thread = threading.Thread(target=self.background_run, args=(iterations, suit_mode))
        self.thread.daemon = True
        self.thread.start()

    def background_run(self, iterations, suit_mode):
        try:
            self.play_games(iterations, suit_mode)
        except Exception as e:
            self.error = e
            self.log("Simulation failed: %s" % e, "error")

    def cancel(self):
        self.cancel_event.set()

    def join(self, timeout=None):
        """
        :rtype: SimulationResult
        :raises Exception: Whatever stopped the background run
        """
        if self.thread is not None:
            self.thread.join(timeout)
        if self.error is not None:
            raise self.error
        return self.result

    def is_running(self):
        return self.thread is not None and self.thread.is_alive()

    def log(self, message, level="debug"):
        self.event_dispatch.send(MessageEvent(level=level, message=message))
