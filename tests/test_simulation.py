import pytest

from conftest import Recorder

from spider.board import InvalidSuitMode
from spider.logic import SpiderLogic
from spider.simulation import SimulationRunner, SimulationResult


def play(dispatch, delay=0, iterations=3, suit_mode=2, seed=42):
    recorder = Recorder(dispatch, ["FinishEvent"])
    runner = SimulationRunner(SpiderLogic(event_dispatch=dispatch), delay=delay, seed=seed)
    result = runner.run(iterations, suit_mode)
    dispatch.update(5)
    return result, [event.won for event in recorder.events]


def test_result_tallies(dispatch):
    result, outcomes = play(dispatch)
    assert result.iterations == 3
    assert result.wins + result.losses == 3
    assert result.wins == outcomes.count(True)
    assert len(outcomes) == 3


def test_seeded_runs_are_reproducible(dispatch):
    assert play(dispatch) == play(dispatch)


def test_delay_does_not_change_outcomes(dispatch):
    assert play(dispatch, iterations=1, suit_mode=1) == play(dispatch, delay=0.0001, iterations=1, suit_mode=1)


def test_finished_event(dispatch):
    recorder = Recorder(dispatch, ["SimulationFinishedEvent", "MessageEvent"])
    runner = SimulationRunner(SpiderLogic(event_dispatch=dispatch), seed=1)
    result = runner.run(2, 4)
    dispatch.update(5)

    finished = recorder.of_type("SimulationFinishedEvent")
    assert len(finished) == 1
    assert tuple(finished[0]) == tuple(result)
    games = [event.message for event in recorder.of_type("MessageEvent")
             if event.level == "info" and event.message.startswith("Game ")]
    assert games[0].startswith("Game 1 ")
    assert games[1].startswith("Game 2 ")
    assert len(games) == 2


def test_zero_iterations(dispatch):
    result = SimulationRunner(SpiderLogic(event_dispatch=dispatch)).run(0, 1)
    assert result == (0, 0, 0)
    assert result.win_percentage == 0.0


def test_win_percentage():
    assert SimulationResult(iterations=4, wins=1, losses=3).win_percentage == 25.0


@pytest.mark.parametrize("iterations", [-1, 2.5, "3", None])
def test_bad_iterations(dispatch, iterations):
    with pytest.raises(ValueError):
        SimulationRunner(SpiderLogic(event_dispatch=dispatch)).run(iterations, 1)


def test_bad_settings(dispatch):
    with pytest.raises(ValueError):
        SimulationRunner(SpiderLogic(event_dispatch=dispatch), delay=-1)
    with pytest.raises(InvalidSuitMode):
        SimulationRunner(SpiderLogic(event_dispatch=dispatch)).run(1, 3)


def test_background_run(dispatch):
    runner = SimulationRunner(SpiderLogic(event_dispatch=dispatch), seed=8)
    runner.start(2, 1)
    result = runner.join(60)
    assert not runner.is_running()
    assert result.iterations == 2
    assert result == runner.result


def test_cancel_stops_between_moves(dispatch):
    logic = SpiderLogic(event_dispatch=dispatch)
    runner = SimulationRunner(logic, delay=0.01, seed=3)
    runner.start(100, 4)
    runner.cancel()
    result = runner.join(10)
    assert not runner.is_running()
    assert result.iterations < 100
    assert not logic.autoplaying
    assert logic.is_intact()


def test_background_error_is_raised_on_join(dispatch):
    recorder = Recorder(dispatch, ["MessageEvent"])
    runner = SimulationRunner(SpiderLogic(event_dispatch=dispatch))
    runner.start(1, 3)
    with pytest.raises(InvalidSuitMode):
        runner.join(10)
    dispatch.update(1)
    assert [event.level for event in recorder.events] == ["error"]


def test_run_after_cancel_plays_again(dispatch):
    runner = SimulationRunner(SpiderLogic(event_dispatch=dispatch), seed=6)
    runner.cancel()
    result = runner.run(2, 1)
    assert result.iterations == 2
    assert not runner.cancel_event.is_set()


def test_run_after_cancelled_background_run(dispatch):
    runner = SimulationRunner(SpiderLogic(event_dispatch=dispatch), delay=0.01, seed=6)
    runner.start(100, 1)
    runner.cancel()
    assert runner.join(10).iterations < 100

    runner.delay = runner.player.delay = 0
    assert runner.run(1, 1).iterations == 1
