"""
Cube State Tests
================

CubeFaceSet invariants, ordered commit delivery and face resolution.
"""

import asyncio
import threading

import pytest

from cube_scanner.cube import CommitChannel, CubeFaceSet, FaceCommit, FaceResolver
from cube_scanner.models.colors import DiscreteColor as C
from cube_scanner.models.outcomes import FrameOutcome
from cube_scanner.models.reading import FaceReading


def solid(color):
    return FaceReading.of([color] * 9)


def centered(center, fill=C.WHITE):
    colors = [fill] * 9
    colors[4] = center
    return FaceReading.of(colors)


class TestCubeFaceSet:
    """Shared face state."""

    def test_starts_unknown(self, cube):
        assert len(cube.faces) == 6
        assert all(face == FaceReading.placeholder() for face in cube.faces)
        assert not cube.is_complete

    @pytest.mark.parametrize("color,index", [
        (C.WHITE, 0), (C.RED, 1), (C.GREEN, 2),
        (C.YELLOW, 3), (C.ORANGE, 4), (C.BLUE, 5),
    ])
    def test_face_index_for(self, color, index):
        assert CubeFaceSet.face_index_for(color) == index

    def test_unknown_has_no_face(self):
        assert CubeFaceSet.face_index_for(C.UNKNOWN) is None

    def test_update_is_idempotent(self, cube):
        assert cube.update(2, centered(C.GREEN)) is True
        assert cube.update(2, centered(C.GREEN)) is False
        assert cube.revision == 1

    def test_update_accepts_sequences(self, cube):
        assert cube.update(1, [C.RED] * 9)
        assert cube.face(1) == solid(C.RED)

    def test_rejects_bad_face_index(self, cube):
        with pytest.raises(ValueError):
            cube.update(6, solid(C.RED))

    def test_rejects_wrong_length(self, cube):
        with pytest.raises(ValueError):
            cube.update(0, [C.WHITE] * 8)

    def test_rejects_unknown_stickers(self, cube):
        with pytest.raises(ValueError):
            cube.update(0, centered(C.WHITE, fill=C.UNKNOWN))

    def test_rejects_other_threads(self, cube):
        errors = []

        def worker():
            try:
                cube.update(0, solid(C.WHITE))
            except RuntimeError as e:
                errors.append(e)

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert len(errors) == 1
        assert cube.face(0) == FaceReading.placeholder()

    def test_listeners_see_changes_only(self, cube):
        seen = []
        unsubscribe = cube.subscribe(lambda index, reading: seen.append(index))

        cube.update(3, solid(C.YELLOW))
        cube.update(3, solid(C.YELLOW))
        unsubscribe()
        cube.update(4, solid(C.ORANGE))

        assert seen == [3]

    def test_complete_after_six_faces(self, cube):
        for color in (C.WHITE, C.RED, C.GREEN, C.YELLOW, C.ORANGE, C.BLUE):
            cube.update(CubeFaceSet.face_index_for(color), solid(color))
        assert cube.is_complete

    def test_snapshot(self, cube):
        cube.update(2, solid(C.GREEN))
        snapshot = cube.snapshot()

        assert snapshot.revision == 1
        assert snapshot.faces[2].name == "F"
        assert snapshot.faces[2].scanned
        assert snapshot.faces[2].stickers == ["GREEN"] * 9
        assert snapshot.faces[2].display == ["#00ff00"] * 9
        assert snapshot.faces[0].display == ["#808080"] * 9

    def test_reset(self, cube):
        cube.update(0, solid(C.WHITE))
        cube.reset()
        assert cube.face(0) == FaceReading.placeholder()


class TestCommitChannel:
    """Ordered hand-off to the state owner."""

    def test_fifo_order(self, cube, channel):
        applied = []
        cube.subscribe(lambda index, reading: applied.append(reading))
        first = centered(C.GREEN, fill=C.RED)
        second = centered(C.GREEN, fill=C.BLUE)

        channel.submit(FaceCommit(2, first))
        channel.submit(FaceCommit(2, second))

        assert cube.face(2) == FaceReading.placeholder()
        assert channel.drain() == 2
        assert applied == [first, second]
        assert cube.face(2) == second

    def test_duplicate_submissions_change_once(self, cube, channel):
        channel.submit(FaceCommit(2, centered(C.GREEN)))
        channel.submit(FaceCommit(2, centered(C.GREEN)))

        assert channel.drain() == 1
        assert channel.get_metrics()["redundant"] == 1
        assert cube.revision == 1

    def test_latest_tracks_queued_commits(self, cube, channel):
        first = centered(C.GREEN, fill=C.RED)
        second = centered(C.GREEN, fill=C.BLUE)

        assert channel.latest(2) is None
        channel.submit(FaceCommit(2, first))
        channel.submit(FaceCommit(2, second))
        assert channel.latest(2) == second

        channel.drain()
        assert channel.latest(2) is None

    def test_failed_commit_does_not_block_the_queue(self):
        """A commit the store rejects is skipped and the rest still land."""

        class PickyStore:
            def __init__(self):
                self.applied = []

            def face_index_for(self, center):
                return None

            def face(self, index):
                return FaceReading.placeholder()

            def update(self, face_index, reading):
                if face_index == 0:
                    raise ValueError("face 0 is read-only")
                self.applied.append(face_index)
                return True

        store = PickyStore()
        channel = CommitChannel(store)
        channel.submit(FaceCommit(0, solid(C.WHITE)))
        channel.submit(FaceCommit(1, solid(C.RED)))

        assert channel.drain() == 1
        assert store.applied == [1]
        assert channel.pending == 0
        assert channel.latest(0) is None

        metrics = channel.get_metrics()
        assert metrics["failed"] == 1
        assert metrics["applied"] == 1

    def test_loop_bound_delivery(self):
        """Commits from a worker thread are applied on the loop thread."""

        async def scenario():
            cube = CubeFaceSet()
            channel = CommitChannel(cube, loop=asyncio.get_running_loop())
            owner = threading.get_ident()
            threads = []
            cube.subscribe(lambda index, reading: threads.append(threading.get_ident()))

            await asyncio.to_thread(channel.submit, FaceCommit(5, solid(C.BLUE)))
            await asyncio.sleep(0)

            return cube, threads, owner

        cube, threads, owner = asyncio.run(scenario())

        assert cube.face(5) == solid(C.BLUE)
        assert threads == [owner]


class TestFaceResolver:
    """Consensus -> face commit."""

    def test_commits_new_reading(self, cube, channel):
        resolver = FaceResolver(cube, channel)

        assert resolver.resolve(centered(C.GREEN)) == FrameOutcome.COMMITTED
        channel.drain()
        assert cube.face(2) == centered(C.GREEN)

    def test_does_not_write_directly(self, cube, channel):
        FaceResolver(cube, channel).resolve(centered(C.GREEN))
        assert cube.face(2) == FaceReading.placeholder()
        assert channel.pending == 1

    def test_redundant_reading(self, cube, channel):
        cube.update(2, centered(C.GREEN))
        resolver = FaceResolver(cube, channel)

        assert resolver.resolve(centered(C.GREEN)) == FrameOutcome.REDUNDANT_READING
        assert channel.pending == 0

    def test_same_reading_twice_is_one_change(self, cube, channel):
        resolver = FaceResolver(cube, channel)
        changes = []
        cube.subscribe(lambda index, reading: changes.append(index))

        resolver.resolve(centered(C.GREEN))
        channel.drain()
        resolver.resolve(centered(C.GREEN))
        channel.drain()

        assert changes == [2]

    def test_newer_scan_wins_over_queued_commit(self, cube, channel):
        """A rescan matching the stored face still commits while another reading is queued."""
        resolver = FaceResolver(cube, channel)
        original = centered(C.GREEN, fill=C.GREEN)
        other = centered(C.GREEN, fill=C.RED)

        resolver.resolve(original)
        channel.drain()

        assert resolver.resolve(other) == FrameOutcome.COMMITTED
        assert resolver.resolve(original) == FrameOutcome.COMMITTED
        channel.drain()

        assert cube.face(2) == original
        assert cube.revision == 3

    def test_repeat_of_queued_reading_is_redundant(self, cube, channel):
        resolver = FaceResolver(cube, channel)

        assert resolver.resolve(centered(C.GREEN)) == FrameOutcome.COMMITTED
        assert resolver.resolve(centered(C.GREEN)) == FrameOutcome.REDUNDANT_READING
        assert channel.pending == 1

    def test_unknown_center(self, cube, channel):
        resolver = FaceResolver(cube, channel)
        reading = centered(C.UNKNOWN)

        assert resolver.resolve(reading) == FrameOutcome.UNRESOLVABLE_CENTER
        assert channel.pending == 0

    def test_store_without_mapping(self, channel):
        """A store with no slot for the center discards the reading."""

        class NoSlots:
            def face_index_for(self, center):
                return None

            def face(self, index):
                raise AssertionError("not reached")

            def update(self, face_index, reading):
                raise AssertionError("not reached")

        resolver = FaceResolver(NoSlots(), channel)
        assert resolver.resolve(centered(C.RED)) == FrameOutcome.UNRESOLVABLE_CENTER
