import threading

from juliamotion.util.progress import FrameProgress, ProgressState, ProgressTimer, TqdmProgressSink


def test_frame_progress_is_thread_safe():
    tracker = FrameProgress(0, 8000)
    threads = [threading.Thread(target=lambda: [tracker.advance(1) for _ in range(1000)]) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert tracker.done == 8000
    assert tracker.finished


def test_head_progress_only_while_rendering():
    state = ProgressState(3)
    tracker = FrameProgress(1, 100)
    state.set_head(tracker)
    assert state.head_progress() is None
    tracker.advance(40)
    assert state.head_progress() == (1, 40, 100)
    tracker.advance(60)
    assert state.head_progress() is None
    state.frame_emitted(None)
    assert state.frames_emitted == 1
    assert state.head_progress() is None


def test_timer_reports_until_stopped():
    ticks = threading.Event()
    timer = ProgressTimer("test-progress", 0.01, ticks.set)
    timer.start()
    assert ticks.wait(2.0)
    timer.stop()
    ticks.clear()
    assert not ticks.wait(0.05)


def test_zero_interval_disables_timer():
    calls = []
    timer = ProgressTimer("test-progress", 0, lambda: calls.append(1))
    assert not timer.enabled
    timer.start()
    timer.stop()
    assert calls == []


def test_tqdm_sink_concurrent_updates_do_not_overcount():
    sink = TqdmProgressSink(10)
    barrier = threading.Barrier(8)

    def report():
        barrier.wait()
        for _ in range(200):
            sink.video_progress(10, 10)

    threads = [threading.Thread(target=report) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sink._bar.n == 10
    sink.video_progress(4, 10)
    assert sink._bar.n == 4
    sink.close()
