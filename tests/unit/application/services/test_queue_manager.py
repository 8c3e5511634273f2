"""Tests for QueueManager."""

from collections import Counter
from dataclasses import replace

import pytest

from nowplaying.application.services.queue_manager import QueueManager, find_entry
from nowplaying.domain.entities import PlayerState, Track


@pytest.fixture
def manager() -> QueueManager:
    return QueueManager()


def playing(queue: tuple[Track, ...], index: int) -> PlayerState:
    return PlayerState(
        current_track=queue[index], current_index=index, queue=queue, is_playing=True
    )


class TestSetQueue:
    """Test wholesale queue replacement."""

    def test_keeps_input_order(self, manager: QueueManager, track_a, track_b, track_c) -> None:
        state = manager.set_queue(PlayerState(), [track_a, track_b, track_c], track_b)

        assert state.queue == (track_a, track_b, track_c)
        assert state.current_track == track_b
        assert state.current_index == 1

    def test_prepends_missing_start_track(self, manager: QueueManager, track_a, track_b, track_d) -> None:
        """A start track not in the list is inserted at index 0."""
        state = manager.set_queue(PlayerState(), [track_a, track_b], track_d)

        assert state.queue == (track_d, track_a, track_b)
        assert state.current_index == 0

    def test_resets_shuffle_and_error(self, manager: QueueManager, track_a, track_b) -> None:
        before = PlayerState(is_shuffled=True, original_queue=(track_b,), error="boom", position=12.0)
        state = manager.set_queue(before, [track_a], track_a)

        assert state.is_shuffled is False
        assert state.original_queue is None
        assert state.error is None
        assert state.position == 0.0


class TestAdd:
    """Test appending and play-next insertion."""

    def test_scenario_b_append(self, manager: QueueManager, track_a, track_b, track_d) -> None:
        """queue=[A,B] + add(D) -> [A,B,D], current unchanged."""
        before = playing((track_a, track_b), 0)
        state = manager.add(before, track_d)

        assert state.queue == (track_a, track_b, track_d)
        assert state.current_track == track_a
        assert state.current_index == 0

    def test_duplicates_allowed(self, manager: QueueManager, track_a) -> None:
        state = manager.add(playing((track_a,), 0), track_a)
        assert state.queue_ids == ("a", "a")

    def test_add_mirrors_into_original_queue(self, manager: QueueManager, track_a, track_b, track_c) -> None:
        shuffled = replace(
            playing((track_b, track_a), 0), is_shuffled=True, original_queue=(track_a, track_b)
        )
        state = manager.add(shuffled, track_c)

        assert state.queue == (track_b, track_a, track_c)
        assert state.original_queue == (track_a, track_b, track_c)

    def test_add_next_inserts_after_current(self, manager: QueueManager, track_a, track_b, track_c, track_d) -> None:
        state = manager.add_next(playing((track_a, track_b, track_c), 1), track_d)

        assert state.queue_ids == ("a", "b", "d", "c")
        assert state.current_index == 1

    def test_add_next_mirrors_after_current_in_original(
        self, manager: QueueManager, track_a, track_b, track_c, track_d
    ) -> None:
        shuffled = replace(
            playing((track_b, track_c, track_a), 0),
            is_shuffled=True,
            original_queue=(track_a, track_b, track_c),
        )
        state = manager.add_next(shuffled, track_d)

        assert state.queue_ids == ("b", "d", "c", "a")
        assert state.original_queue is not None
        assert tuple(t.id for t in state.original_queue) == ("a", "b", "d", "c")


class TestRemove:
    """Test removal and the current-track succession rule."""

    def test_out_of_range_is_noop(self, manager: QueueManager, track_a) -> None:
        before = playing((track_a,), 0)
        assert manager.remove(before, 5) is before
        assert manager.remove(before, -1) is before

    def test_removing_current_moves_to_following_track(self, manager: QueueManager, track_a, track_b, track_c) -> None:
        state = manager.remove(playing((track_a, track_b, track_c), 1), 1)

        assert state.queue_ids == ("a", "c")
        assert state.current_track == track_c
        assert state.current_index == 1
        assert state.is_playing is True

    def test_removing_current_last_moves_to_previous(self, manager: QueueManager, track_a, track_b) -> None:
        state = manager.remove(playing((track_a, track_b), 1), 1)

        assert state.current_track == track_a
        assert state.current_index == 0

    def test_removing_only_track_goes_idle(self, manager: QueueManager, track_a) -> None:
        state = manager.remove(playing((track_a,), 0), 0)

        assert state.queue == ()
        assert state.is_idle
        assert state.current_index is None
        assert state.is_playing is False

    def test_removing_before_current_shifts_index(self, manager: QueueManager, track_a, track_b, track_c) -> None:
        state = manager.remove(playing((track_a, track_b, track_c), 2), 0)

        assert state.current_track == track_c
        assert state.current_index == 1

    def test_removing_after_current_keeps_index(self, manager: QueueManager, track_a, track_b, track_c) -> None:
        state = manager.remove(playing((track_a, track_b, track_c), 0), 2)

        assert state.current_index == 0
        assert state.queue_ids == ("a", "b")

    def test_removes_only_the_given_duplicate(self, manager: QueueManager, track_a, track_b) -> None:
        """With the same track queued twice, only the entry at index goes."""
        state = manager.remove(playing((track_a, track_b, track_a), 1), 2)
        assert state.queue_ids == ("a", "b")

    def test_remove_mirrors_into_original_queue(self, manager: QueueManager, track_a, track_b, track_c) -> None:
        shuffled = replace(
            playing((track_a, track_c, track_b), 0),
            is_shuffled=True,
            original_queue=(track_a, track_b, track_c),
        )
        state = manager.remove(shuffled, 1)

        assert state.original_queue == (track_a, track_b)


class TestReorder:
    """Test single-element moves."""

    @pytest.mark.parametrize(("old", "new"), [(0, 3), (3, 0), (1, 2), (2, 1), (0, 0)])
    def test_preserves_multiset(self, manager: QueueManager, track_a, track_b, track_c, track_d, old, new) -> None:
        queue = (track_a, track_b, track_c, track_d)
        state = manager.reorder(playing(queue, 0), old, new)

        assert Counter(state.queue_ids) == Counter(t.id for t in queue)
        assert state.queue[new] == queue[old]

    def test_current_track_follows_its_entry(self, manager: QueueManager, track_a, track_b, track_c) -> None:
        state = manager.reorder(playing((track_a, track_b, track_c), 0), 0, 2)

        assert state.queue_ids == ("b", "c", "a")
        assert state.current_index == 2
        assert state.queue[state.current_index] == state.current_track

    def test_index_shifts_when_moving_across_current(self, manager: QueueManager, track_a, track_b, track_c) -> None:
        forward = manager.reorder(playing((track_a, track_b, track_c), 1), 0, 2)
        backward = manager.reorder(playing((track_a, track_b, track_c), 1), 2, 0)

        assert forward.current_index == 0
        assert backward.current_index == 2

    def test_out_of_range_is_noop(self, manager: QueueManager, track_a, track_b) -> None:
        before = playing((track_a, track_b), 0)
        assert manager.reorder(before, 0, 2) is before
        assert manager.reorder(before, -1, 0) is before

    def test_duplicate_drop_event_is_ignored(self, manager: QueueManager, track_a, track_b, track_c) -> None:
        """Replaying the same drag with its identity guard does not move anything twice."""
        before = playing((track_a, track_b, track_c), 0)
        once = manager.reorder(before, 0, 2, track_id="a")
        twice = manager.reorder(once, 0, 2, track_id="a")

        assert once.queue_ids == ("b", "c", "a")
        assert twice is once


class TestClear:
    """Test emptying the queue."""

    def test_clear_goes_idle(self, manager: QueueManager, track_a, track_b) -> None:
        state = manager.clear(playing((track_a, track_b), 1))

        assert state.queue == ()
        assert state.recommended_tracks == ()
        assert state.is_idle
        assert state.is_playing is False
        assert state.original_queue is None

    def test_clear_while_shuffled_keeps_empty_snapshot(self, manager: QueueManager, track_a) -> None:
        shuffled = replace(playing((track_a,), 0), is_shuffled=True, original_queue=(track_a,))
        state = manager.clear(shuffled)

        assert state.is_shuffled is True
        assert state.original_queue == ()


class TestFindEntry:
    """Test queue entry lookup."""

    def test_prefers_identical_object(self, track_factory) -> None:
        first = track_factory("x")
        second = track_factory("x")
        assert find_entry((first, second), second) == 1

    def test_falls_back_to_id(self, track_a, track_factory) -> None:
        assert find_entry((track_a,), track_factory("a")) == 0
        assert find_entry((track_a,), track_factory("z")) is None
