import sys
import threading
import time

from .events import EventDispatch
from .logic import SpiderLogic
from .simulation import SimulationRunner

LEVELS = {"debug": 0, "info": 1, "error": 2}

class SpiderGame(object):
    def __init__(self, iterations=1, suit_mode=1, delay=0, seed=None, verbosity="error", stream=None):
        """
        :param int iterations: Games to autoplay
        :param int suit_mode: 1, 2 or 4
        :param float delay: Seconds between moves
        :param int seed: Seed
        :param str verbosity: Lowest message level written out
        :param stream: Where messages go, stderr if None
        """
        self.event_dispatch = EventDispatch()
        self.logic = SpiderLogic(suit_mode, self.event_dispatch)
        self.runner = SimulationRunner(self.logic, delay=delay, seed=seed)
        self.iterations = iterations
        self.suit_mode = suit_mode
        self.verbosity = LEVELS[verbosity]
        self.stream = stream or sys.stderr
        self.stats = None
        self.shutdown_event = threading.Event()

    def start(self):
        self.event_dispatch.register(self.log, ["MessageEvent"])
        self.event_dispatch.register(self.finish, ["SimulationFinishedEvent"])
        self.shutdown_event.set()
        self.runner.start(self.iterations, self.suit_mode)
        self.game_loop()
        return self.runner.join()

    def game_loop(self):
        MAX_FPS = 30
        S_PER_FRAME = 1.0/MAX_FPS
        start = time.time()

        while self.shutdown_event.is_set():
            try:
                running = self.runner.is_running()
                drained = self.event_dispatch.update(S_PER_FRAME)
                if not running and drained:
                    self.shutdown_event.clear()
                    break

                elapsed = time.time() - start
                start += elapsed
                if elapsed < S_PER_FRAME:
                    time.sleep(S_PER_FRAME-elapsed)

            except KeyboardInterrupt:
                self.runner.cancel()

    def log(self, event):
        if LEVELS.get(event.level, 0) >= self.verbosity:
            self.stream.write("[%s] %s\n" % (event.level, event.message))

    def finish(self, event):
        self.stats = event
        if event.iterations > 0:
            percentage = 100.0 * event.wins / event.iterations
        else:
            percentage = 0.0
        print("Algorithm ran for %d iteration(s)." % event.iterations)
        print("Wins: %d" % event.wins)
        print("Losses: %d" % event.losses)
        print("Win percentage: %.2f%%" % percentage)
