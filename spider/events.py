import itertools
import queue
import threading
import time
import weakref

from collections import defaultdict, namedtuple

MoveEvent = namedtuple('MoveEvent', ['source', 'dest', 'num'])
DealEvent = namedtuple('DealEvent', ['remaining'])
FoundationEvent = namedtuple('FoundationEvent', ['slot', 'suit'])
GameWonEvent = namedtuple('GameWonEvent', [])
RoundCompleteEvent = namedtuple('RoundCompleteEvent', ['round', 'foundations'])
FinishEvent = namedtuple('FinishEvent', ['won'])
SimulationFinishedEvent = namedtuple('SimulationFinishedEvent', ['iterations', 'wins', 'losses'])
MessageEvent = namedtuple('MessageEvent', ['level', 'message'])

Callback = namedtuple('Callback', ['fn', 'obj'])

class EventDispatch(object):
    def __init__(self):
        self.queue = queue.PriorityQueue()
        self.registered = defaultdict(set)
        """:type : defaultdict[str, set]"""
        self.lock = threading.Lock()
        self.counter = itertools.count()

    def make_callback(self, callback):
        try:
            callback = Callback(fn=weakref.ref(callback.__func__), obj=weakref.ref(callback.__self__))
        except AttributeError:
            callback = Callback(fn=weakref.ref(callback), obj=None)
        return callback

    def register(self, callback, event_types):
        """
        :param callable callback: Callback for event types
        :param list[str] event_types: List of event types (as strings)
        """
        with self.lock:
            callback = self.make_callback(callback)
            for event_type in event_types:
                self.registered[event_type].add(callback)

    def unregister(self, callback, event_types):
        """
        :param callable callback: Callback for event types
        :param list[str] event_types: List of event types (as strings)
        """
        with self.lock:
            callback = self.make_callback(callback)
            for event_type in event_types:
                self.registered[event_type].discard(callback)

    def is_registered(self, event_type):
        with self.lock:
            return len(self.registered[event_type]) > 0

    def send(self, event, priority=5):
        """
        Events nobody listens for are dropped so a producer with no observers
        never grows the queue.

        :param namedtuple event: Event
        :param int priority: Lower is delivered first
        """
        if not self.is_registered(type(event).__name__):
            return
        self.queue.put((priority, next(self.counter), event))

    def update(self, max_time):
        """
        Delivers queued events until empty or `max_time` seconds have passed.

        :rtype: bool
        :return: True if the queue was drained
        """
        start = time.time()
        while not self.queue.empty():
            try:
                item = self.queue.get_nowait()
            except queue.Empty:
                break
            event = item[2]
            cleanup_callbacks = []
            with self.lock:
                callbacks = set(self.registered[type(event).__name__])
            for callback in callbacks:
                fn = callback.fn()
                if fn is None:
                    cleanup_callbacks.append(callback)
                    continue

                if callback.obj is None:
                    fn(event)
                else:
                    obj = callback.obj()
                    if obj is None:
                        cleanup_callbacks.append(callback)
                        continue
                    fn(obj, event)

            with self.lock:
                for callback in cleanup_callbacks:
                    self.registered[type(event).__name__].discard(callback)

            self.queue.task_done()

            if not self.queue.empty() and time.time() - start >= max_time:
                return False
        return True

event_dispatch = EventDispatch()
