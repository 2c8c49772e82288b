import threading

from conftest import FakeMediaProbe, spans
from scriptcut.command_executor import CommandExecutor
from scriptcut.command_parser import parse_commands
from scriptcut.models import SegmentState
from scriptcut.segment_manager import VideoSegmentManager

STOPPED, HIDDEN = SegmentState.STOPPED, SegmentState.HIDDEN


def run(executor, *lines, cancel_event=None):
    commands, errors = parse_commands("\n".join(lines))
    assert errors == []
    return executor.apply(commands, cancel_event)


def test_load_then_cut_splits_in_two(executor, manager):
    report = run(executor, "LOAD v.mp4", "CUT 00:00:10.000")
    assert report.all_succeeded
    assert spans(manager.segments) == [(0.0, 10.0, True, STOPPED, 1.0), (10.0, 30.0, True, STOPPED, 1.0)]
    assert report.results[1].affected_segment_ids == [2, 3]


def test_hide_splits_at_both_ends(executor, manager):
    run(executor, "LOAD v.mp4", "HIDE 00:00:05.000 00:00:15.000")
    assert spans(manager.segments) == [
        (0.0, 5.0, True, STOPPED, 1.0),
        (5.0, 15.0, False, HIDDEN, 1.0),
        (15.0, 30.0, True, STOPPED, 1.0),
    ]


def test_failed_cut_does_not_stop_the_batch(executor, manager):
    report = run(executor, "LOAD v.mp4", "CUT 00:01:00.000", "HIDE 00:00:00.000 00:00:05.000")
    cut = report.results[1]
    assert not cut.success
    assert cut.affected_segment_ids == []
    assert cut.error_message == "position outside segment (00:01:00.000)"
    assert report.results[2].success
    assert report.error_messages == ["行2: position outside segment (00:01:00.000)"]
    assert spans(manager.segments)[0] == (0.0, 5.0, False, HIDDEN, 1.0)


def test_commands_before_load_fail(executor, manager):
    report = run(executor, "CUT 00:00:10.000", "HIDE 00:00:01.000 00:00:02.000")
    assert [r.success for r in report.results] == [False, False]
    assert report.results[0].error_message == "no video loaded"
    assert manager.segments == []


def test_cut_on_existing_boundary_fails(executor, manager):
    report = run(executor, "LOAD v.mp4", "CUT 00:00:10.000", "CUT 00:00:10.000")
    assert not report.results[2].success
    assert len(manager.segments) == 2


def test_range_outside_media_fails(executor, manager):
    report = run(executor, "LOAD v.mp4", "HIDE 00:00:40.000 00:00:50.000")
    assert not report.results[1].success
    assert spans(manager.segments) == [(0.0, 30.0, True, STOPPED, 1.0)]


def test_show_inside_hidden_range(executor, manager):
    run(executor, "LOAD v.mp4", "HIDE 00:00:00.000 00:00:30.000", "SHOW 00:00:05.000 00:00:10.000")
    assert spans(manager.segments) == [
        (0.0, 5.0, False, HIDDEN, 1.0),
        (5.0, 10.0, True, STOPPED, 1.0),
        (10.0, 30.0, False, HIDDEN, 1.0),
    ]


def test_cutting_a_hidden_segment_gives_stopped_halves_that_stay_invisible(executor, manager):
    run(executor, "LOAD v.mp4", "HIDE 00:00:00.000 00:00:30.000", "CUT 00:00:10.000")
    assert [(s.visible, s.state) for s in manager.segments] == [(False, STOPPED), (False, STOPPED)]


def test_delete_leaves_a_gap(executor, manager):
    run(executor, "LOAD v.mp4", "DELETE 00:00:10.000 00:00:20.000")
    assert [(s.start_time, s.end_time) for s in manager.segments] == [(0.0, 10.0), (20.0, 30.0)]


def test_speed_applies_to_the_range_only(executor, manager):
    run(executor, "LOAD v.mp4", "SPEED 2x 00:00:05.000 00:00:10.000")
    segments = manager.segments
    assert [s.speed_rate for s in segments] == [1.0, 2.0, 1.0]
    assert segments[1].effective_duration == 2.5


def test_merge_joins_adjacent_segments(executor, manager):
    report = run(executor, "LOAD v.mp4", "CUT 00:00:10.000", "CUT 00:00:20.000", "MERGE 00:00:00.000 00:00:30.000")
    assert report.all_succeeded
    assert [(s.id, s.start_time, s.end_time) for s in manager.segments] == [(2, 0.0, 30.0)]


def test_merge_of_single_segment_changes_nothing(executor, manager):
    report = run(executor, "LOAD v.mp4", "MERGE 00:00:05.000 00:00:10.000")
    assert report.results[1].success
    assert spans(manager.segments) == [(0.0, 30.0, True, STOPPED, 1.0)]


def test_merge_across_a_gap_fails(executor, manager):
    report = run(executor, "LOAD v.mp4", "DELETE 00:00:10.000 00:00:20.000", "MERGE 00:00:00.000 00:00:30.000")
    assert report.results[2].error_message == "non-contiguous merge range"
    assert len(manager.segments) == 2


def test_second_load_replaces_partition(executor, manager):
    run(executor, "LOAD v.mp4", "CUT 00:00:10.000", "LOAD long.mp4")
    assert [(s.start_time, s.end_time, s.video_file_path) for s in manager.segments] == [(0.0, 7200.0, "long.mp4")]


def test_unreadable_media_uses_default_duration(executor, manager):
    report = run(executor, "LOAD missing.mp4")
    assert report.all_succeeded
    assert [(s.start_time, s.end_time) for s in manager.segments] == [(0.0, 100.0)]


def test_invalid_duration_is_rolled_back():
    manager = VideoSegmentManager()
    executor = CommandExecutor(manager, FakeMediaProbe({"v.mp4": 30.0, "zero.mp4": 0.0}))
    report = run(executor, "LOAD v.mp4", "LOAD zero.mp4", "CUT 00:00:10.000")
    assert [r.success for r in report.results] == [True, False, True]
    assert report.results[1].error_message.startswith("rejected: ")
    assert len(manager.segments) == 2


def test_reapplying_the_same_script_is_idempotent(executor, manager):
    lines = ("LOAD v.mp4", "CUT 00:00:10.000", "HIDE 00:00:12.000 00:00:14.000", "SPEED 1.5x 00:00:20.000 00:00:25.000")
    run(executor, *lines)
    first = manager.segments
    events = []
    manager.subscribe(lambda event, segment: events.append(event))
    run(executor, *lines)
    assert manager.segments == first
    assert events == []


def test_cancelled_batch_commits_nothing(executor, manager):
    run(executor, "LOAD v.mp4")
    before = manager.segments
    cancel = threading.Event()
    cancel.set()
    report = run(executor, "LOAD v.mp4", "CUT 00:00:10.000", cancel_event=cancel)
    assert report.cancelled
    assert report.total_commands == 0
    assert manager.segments == before


def test_one_millisecond_hide_only_hides_that_millisecond(executor, manager):
    run(executor, "LOAD v.mp4", "HIDE 00:00:05.000 00:00:05.001")
    assert spans(manager.segments) == [
        (0.0, 5.0, True, STOPPED, 1.0),
        (5.0, 5.001, False, HIDDEN, 1.0),
        (5.001, 30.0, True, STOPPED, 1.0),
    ]


def test_one_millisecond_delete_only_removes_that_millisecond(executor, manager):
    run(executor, "LOAD v.mp4", "DELETE 00:00:05.000 00:00:05.001")
    assert [(s.start_time, s.end_time) for s in manager.segments] == [(0.0, 5.0), (5.001, 30.0)]


def test_range_starting_just_before_a_boundary(executor, manager):
    run(executor, "LOAD v.mp4", "CUT 00:00:10.000", "HIDE 00:00:09.999 00:00:20.000")
    assert spans(manager.segments) == [
        (0.0, 9.999, True, STOPPED, 1.0),
        (9.999, 10.0, False, HIDDEN, 1.0),
        (10.0, 20.0, False, HIDDEN, 1.0),
        (20.0, 30.0, True, STOPPED, 1.0),
    ]


def test_cut_one_millisecond_into_the_media(executor, manager):
    report = run(executor, "LOAD v.mp4", "CUT 00:00:00.001")
    assert report.all_succeeded
    assert [(s.start_time, s.end_time) for s in manager.segments] == [(0.0, 0.001), (0.001, 30.0)]
