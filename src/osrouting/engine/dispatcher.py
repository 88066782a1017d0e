"""
    Event lanes for packets taken by the classifier.

    There are two lanes, ICMP and L3 (PNAT). Each lane owns a queue and a single green thread draining it, so events of
    the same lane are handled strictly in the order they were submitted. The lanes do not wait for each other.

    A failing handler never takes its lane down. The exception is logged, counted and the event is dropped; there is no
    retry.
    Handlers have no timeout: a handler stuck in a rule installation stalls its lane until it returns.
"""

import sys
import logging

import eventlet
from eventlet.queue import LightQueue

from osrouting.helpers import logger_module_name, custom_logging_callback
from osrouting.engine.classifier import ICMP_LANE, L3_LANE, LaneAssignment
from osrouting.engine.exceptions import DispatcherNotRunning

_log = logging.getLogger(logger_module_name(__file__))

LANES = (ICMP_LANE, L3_LANE)

_STOP = object()  # lane shutdown marker


class EventDispatcher(object):
    def __init__(self, handlers):
        assert isinstance(handlers, dict), "handlers is not dict. Got {:s}".format(repr(handlers))
        assert set(handlers) == set(LANES), "handlers must be given for lanes {:s}".format(str(LANES))
        assert all((callable(h) for h in handlers.values())), "handlers must be callable"

        self.__handlers = dict(handlers)
        self.__queues = {}
        self.__workers = {}
        self.__running = False
        self.__processed = dict(((lane, 0) for lane in LANES))
        self.__failures = dict(((lane, 0) for lane in LANES))

    @property
    def is_running(self):
        return self.__running

    @property
    def processed(self):
        return dict(self.__processed)

    @property
    def failures(self):
        return dict(self.__failures)

    def pending(self, lane):
        queue = self.__queues.get(lane)
        return queue.qsize() if queue is not None else 0

    def start(self):
        if self.__running:
            return
        for lane in LANES:
            queue = LightQueue()
            self.__queues[lane] = queue
            self.__workers[lane] = eventlet.spawn(self.__lane_loop, lane, queue)
        self.__running = True
        _log.info("Event dispatcher started with lanes {:s}".format(str(LANES)))

    def stop(self):
        '''
            Stops accepting events, lets both lanes drain what is already queued, then waits for them.
        '''
        if not self.__running:
            return
        self.__running = False
        for lane in LANES:
            self.__queues[lane].put(_STOP)
        for lane in LANES:
            self.__workers[lane].wait()
        self.__workers.clear()
        self.__queues.clear()
        _log.info(
            "Event dispatcher stopped. Processed: {:s} Failed: {:s}".format(
                str(self.__processed), str(self.__failures)
            )
        )

    def submit(self, assignment):
        assert isinstance(assignment, LaneAssignment), "assignment is not LaneAssignment. Got {:s}".format(
            repr(assignment)
        )
        assert assignment.lane in LANES, "unknown lane {:s}".format(str(assignment.lane))

        if not self.__running:
            raise DispatcherNotRunning()
        self.__queues[assignment.lane].put(assignment)

    def __lane_loop(self, lane, queue):
        handler = self.__handlers[lane]
        while True:
            event = queue.get()
            if event is _STOP:
                return
            try:
                handler(event)
                self.__processed[lane] += 1
            except Exception:
                self.__failures[lane] += 1
                _log.error(
                    "Handler of lane {:s} failed ({:d} failures so far). Event dropped.".format(
                        lane, self.__failures[lane]
                    )
                )
                custom_logging_callback(_log, logging.ERROR, *sys.exc_info())
