#!/usr/bin/env python3
# usage: spider-solitaire.py [iterations] [suits] [delay-ms] [seed=N] [verbose|debug]

import sys

from spider.game import SpiderGame

if __name__ == "__main__":

    verbosity = "error"
    if "debug" in sys.argv:
        sys.argv.remove("debug")
        verbosity = "debug"
    if "verbose" in sys.argv:
        sys.argv.remove("verbose")
        verbosity = "info"

    seed = None
    for arg in sys.argv[1:]:
        if arg.startswith("seed="):
            seed = int(arg[len("seed="):])
            sys.argv.remove(arg)
            break

    iterations, suit_mode, delay = 1, 1, 0
    if len(sys.argv) > 1:
        iterations = int(sys.argv[1])
    if len(sys.argv) > 2:
        suit_mode = int(sys.argv[2])
    if len(sys.argv) > 3:
        delay = int(sys.argv[3]) / 1000.0

    game = SpiderGame(iterations, suit_mode, delay, seed, verbosity)
    game.start()
