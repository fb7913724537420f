"""Tests for detect_overlaps and flatten_overlaps."""
from __future__ import annotations

from sparsehex.blocks import join_blocks
from sparsehex.overlap import detect_overlaps, flatten_overlaps
from sparsehex.types import MemoryMap, OverlapEntry

A = bytes(range(10))
B = bytes(range(100, 110))


def _two_sets() -> list[tuple[str, MemoryMap]]:
    return [("A", MemoryMap([(0, A)])), ("B", MemoryMap([(5, B)]))]


class TestDetectOverlaps:
    def test_two_overlapping_sets(self) -> None:
        overlaps = detect_overlaps(_two_sets())
        assert list(overlaps) == [0, 5, 10]
        assert overlaps[0] == (("A", A[0:5]),)
        assert overlaps[5] == (("A", A[5:10]), ("B", B[0:5]))
        assert overlaps[10] == (("B", B[5:10]),)

    def test_entries_are_named_tuples_with_views(self) -> None:
        overlaps = detect_overlaps(_two_sets())
        entry = overlaps[5][1]
        assert isinstance(entry, OverlapEntry)
        assert entry.id == "B"
        assert isinstance(entry.view, memoryview)
        assert entry.view.readonly

    def test_views_are_zero_copy(self) -> None:
        sets = _two_sets()
        source = sets[0][1][0]
        overlaps = detect_overlaps(sets)
        assert overlaps[0][0].view.obj is source

    def test_input_order_is_preserved(self) -> None:
        sets = [("B", MemoryMap([(5, B)])), ("A", MemoryMap([(0, A)]))]
        overlaps = detect_overlaps(sets)
        assert [entry.id for entry in overlaps[5]] == ["B", "A"]

    def test_gaps_are_omitted(self) -> None:
        sets = [("x", MemoryMap([(0, b"\x01\x02"), (10, b"\x03")])), ("y", MemoryMap([(20, b"\x04")]))]
        overlaps = detect_overlaps(sets)
        assert list(overlaps) == [0, 10, 20]
        assert overlaps[10] == (("x", b"\x03"),)

    def test_accepts_dict_items_and_plain_mappings(self) -> None:
        overlaps = detect_overlaps({"A": {0: A}, "B": {5: B}}.items())
        assert list(overlaps) == [0, 5, 10]

    def test_accepts_mapping_of_sets(self) -> None:
        overlaps = detect_overlaps({"A": MemoryMap([(0, A)]), "B": MemoryMap([(5, B)])})
        assert [entry.id for entry in overlaps[5]] == ["A", "B"]

    def test_conflicts(self) -> None:
        overlaps = detect_overlaps(_two_sets())
        conflicts = overlaps.conflicts()
        assert [address for address, _ in conflicts] == [5]

    def test_no_sets(self) -> None:
        assert len(detect_overlaps([])) == 0

    def test_single_set_passes_through(self) -> None:
        overlaps = detect_overlaps([("only", MemoryMap([(0, b"ab"), (4, b"cd")]))])
        assert overlaps == {0: (("only", b"ab"),), 4: (("only", b"cd"),)}


class TestFlattenOverlaps:
    def test_last_writer_wins(self) -> None:
        flat = flatten_overlaps(detect_overlaps(_two_sets()))
        assert flat == {0: A[0:5], 5: B[0:5], 10: B[5:10]}
        assert list(flat) == [0, 5, 10]

    def test_result_owns_its_data(self) -> None:
        flat = flatten_overlaps(detect_overlaps(_two_sets()))
        assert all(isinstance(block, bytes) for block in flat.values())

    def test_join_after_flatten(self) -> None:
        flat = flatten_overlaps(detect_overlaps(_two_sets()))
        assert join_blocks(flat) == {0: A[0:5] + B}
