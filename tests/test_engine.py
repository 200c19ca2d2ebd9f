"""GameEngine: 単語リスト・スコア・カウントダウン連携・一度きりイベント・dispose"""

import random

import pytest

from guess_the_word.engine import (
    WORDS,
    BuzzType,
    EngineConfig,
    EngineDisposedError,
    GameEngine,
    format_elapsed_time,
)


# --- 初期化 ---

def test_initial_state(engine, countdown):
    assert engine.score.value == 0
    assert engine.event_game_finish.value is False
    assert engine.event_buzz.value == BuzzType.NO_BUZZ
    assert engine.current_time.value == 60
    assert engine.current_time_string.value == "01:00"
    assert engine.word.value in WORDS
    assert countdown.start_calls == 1
    assert countdown.cancel_calls == 0


def test_vocabulary_has_21_distinct_words():
    assert len(WORDS) == 21
    assert len(set(WORDS)) == 21


def test_empty_vocabulary_is_rejected():
    with pytest.raises(ValueError):
        EngineConfig(words=())


@pytest.mark.parametrize("seed", range(10))
def test_queue_is_vocabulary_minus_current_word(seed):
    e = GameEngine(_NullCountdown(), rng=random.Random(seed))
    remaining = e.remaining_words
    assert len(remaining) == 20
    assert e.word.value not in remaining
    assert sorted(remaining + (e.word.value,)) == sorted(WORDS)


def test_shuffle_uses_injected_rng():
    a = GameEngine(_NullCountdown(), rng=random.Random(7))
    b = GameEngine(_NullCountdown(), rng=random.Random(7))
    assert a.word.value == b.word.value
    assert a.remaining_words == b.remaining_words


# --- スキップ / 正解 ---

def test_skip_decrements_score_and_advances(engine):
    first = engine.word.value
    expected_next = engine.remaining_words[0]
    engine.on_skip()
    assert engine.score.value == -1
    assert engine.word.value == expected_next
    assert engine.word.value != first
    assert engine.event_buzz.value == BuzzType.NO_BUZZ


def test_skip_keeps_going_negative(engine):
    for _ in range(5):
        engine.on_skip()
    assert engine.score.value == -5
    engine.on_skip()
    assert engine.score.value == -6


def test_correct_increments_score_and_buzzes(engine):
    expected_next = engine.remaining_words[0]
    engine.on_correct()
    assert engine.score.value == 1
    assert engine.word.value == expected_next
    assert engine.event_buzz.value == BuzzType.CORRECT


def test_correct_from_negative_score(engine):
    engine.on_skip()
    engine.on_skip()
    engine.on_correct()
    assert engine.score.value == -1


def test_three_correct_one_skip_scores_two(engine):
    for _ in range(3):
        engine.on_correct()
    engine.on_skip()
    assert engine.score.value == 2


def test_word_queue_reshuffles_when_exhausted(engine):
    seen = [engine.word.value]
    for _ in range(20):
        engine.on_skip()
        seen.append(engine.word.value)
    # 1周目で全単語を一度ずつ出し切る
    assert sorted(seen) == sorted(WORDS)
    assert engine.remaining_words == ()

    engine.on_skip()
    assert engine.word.value in WORDS
    assert len(engine.remaining_words) == 20

    for _ in range(100):
        engine.on_correct()
        assert engine.word.value in WORDS
    assert engine.score.value == 79


# --- カウントダウン ---

def test_tick_updates_time(engine, countdown):
    countdown.tick(42)
    assert engine.current_time.value == 42
    assert engine.current_time_string.value == "00:42"
    assert engine.event_buzz.value == BuzzType.NO_BUZZ


def test_tick_eleven_is_not_panic(engine, countdown):
    countdown.tick(11)
    assert engine.event_buzz.value == BuzzType.NO_BUZZ


@pytest.mark.parametrize("seconds", range(1, 11))
def test_panic_window_buzzes(engine, countdown, seconds):
    countdown.tick(seconds)
    assert engine.event_buzz.value == BuzzType.COUNTDOWN_PANIC


def test_panic_is_signalled_every_tick(engine, countdown):
    seen = []
    engine.event_buzz.subscribe(seen.append)
    for s in (10, 9, 8):
        countdown.tick(s)
        engine.on_buzz_complete()
    panics = [b for b in seen if b == BuzzType.COUNTDOWN_PANIC]
    assert len(panics) == 3


def test_finish(engine, countdown):
    countdown.finish()
    assert engine.event_game_finish.value is True
    assert engine.current_time.value == 0
    assert engine.current_time_string.value == "00:00"
    assert engine.event_buzz.value == BuzzType.GAME_OVER


def test_full_countdown_scenario(engine, countdown):
    for s in range(60, -1, -1):
        countdown.tick(s)
    countdown.finish()
    assert engine.event_game_finish.value is True
    assert engine.current_time.value == 0
    assert engine.event_buzz.value == BuzzType.GAME_OVER


def test_panic_threshold_follows_config(countdown):
    cfg = EngineConfig(countdown_seconds=30, panic_seconds=3)
    e = GameEngine(countdown, cfg, rng=random.Random(0))
    assert e.current_time.value == 30
    countdown.tick(4)
    assert e.event_buzz.value == BuzzType.NO_BUZZ
    countdown.tick(3)
    assert e.event_buzz.value == BuzzType.COUNTDOWN_PANIC


# --- 一度きりイベントの消費 ---

def test_game_finish_acknowledged(engine, countdown):
    countdown.finish()
    engine.on_game_finish_complete()
    assert engine.event_game_finish.value is False


def test_buzz_acknowledged(engine):
    engine.on_correct()
    engine.on_buzz_complete()
    assert engine.event_buzz.value == BuzzType.NO_BUZZ


def test_buzz_patterns():
    assert BuzzType.CORRECT.pattern == (100, 100, 100, 100, 100, 100)
    assert BuzzType.COUNTDOWN_PANIC.pattern == (0, 200)
    assert BuzzType.GAME_OVER.pattern == (0, 2000)
    assert BuzzType.NO_BUZZ.pattern == (0,)


# --- 監視 ---

def test_subscribe_receives_current_then_updates(engine):
    scores = []
    unsubscribe = engine.score.subscribe(scores.append)
    engine.on_correct()
    engine.on_skip()
    unsubscribe()
    engine.on_correct()
    assert scores == [0, 1, 0]


def test_observer_can_acknowledge_inside_callback(engine):
    received = []

    def on_buzz(buzz):
        received.append(buzz)
        if buzz != BuzzType.NO_BUZZ:
            engine.on_buzz_complete()

    engine.event_buzz.subscribe(on_buzz)
    engine.on_correct()
    assert received == [BuzzType.NO_BUZZ, BuzzType.CORRECT, BuzzType.NO_BUZZ]
    assert engine.event_buzz.value == BuzzType.NO_BUZZ


def test_later_observer_sees_acknowledged_buzz(engine):
    def acknowledge(buzz):
        if buzz != BuzzType.NO_BUZZ:
            engine.on_buzz_complete()

    seen = []
    engine.event_buzz.subscribe(acknowledge)
    engine.event_buzz.subscribe(seen.append)
    engine.on_correct()
    assert seen[-1] == engine.event_buzz.value == BuzzType.NO_BUZZ
    assert BuzzType.CORRECT not in seen


def test_later_observer_sees_acknowledged_game_finish(engine, countdown):
    def acknowledge(finished):
        if finished:
            engine.on_game_finish_complete()

    seen = []
    engine.event_game_finish.subscribe(acknowledge)
    engine.event_game_finish.subscribe(seen.append)
    countdown.finish()
    assert seen[-1] is False
    assert engine.event_game_finish.value is False


def test_derived_time_string_follows_ticks(engine, countdown):
    texts = []
    engine.current_time_string.subscribe(texts.append)
    countdown.tick(59)
    countdown.tick(10)
    assert texts == ["01:00", "00:59", "00:10"]


# --- dispose ---

def test_dispose_cancels_countdown_once(engine, countdown):
    engine.dispose()
    assert engine.disposed
    assert countdown.cancel_calls == 1
    countdown.tick(5)
    countdown.finish()
    assert engine.current_time.value == 60
    assert engine.event_game_finish.value is False


@pytest.mark.parametrize(
    "call",
    [
        lambda e: e.on_skip(),
        lambda e: e.on_correct(),
        lambda e: e.on_tick(3),
        lambda e: e.on_finish(),
        lambda e: e.on_game_finish_complete(),
        lambda e: e.on_buzz_complete(),
        lambda e: e.dispose(),
    ],
)
def test_operations_after_dispose_fail_fast(engine, countdown, call):
    engine.on_correct()
    engine.dispose()
    with pytest.raises(EngineDisposedError):
        call(engine)
    assert engine.score.value == 1
    assert countdown.cancel_calls == 1


# --- 時間表示 ---

@pytest.mark.parametrize(
    "seconds, text",
    [(0, "00:00"), (9, "00:09"), (60, "01:00"), (61, "01:01"), (3599, "59:59"), (3600, "1:00:00"), (-3, "00:00")],
)
def test_format_elapsed_time(seconds, text):
    assert format_elapsed_time(seconds) == text


class _NullCountdown:
    def start(self, on_tick, on_finish):
        pass

    def cancel(self):
        pass
