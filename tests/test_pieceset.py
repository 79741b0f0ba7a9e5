# tests/test_pieceset.py
from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from tetris3d.game.core.piece_rules import SequencePieceRule, UniformPieceRule
from tetris3d.game.core.pieceset import PieceSet


def test_bundled_set_loads_in_file_order() -> None:
    ps = PieceSet.default()
    assert ps.kinds() == ("I", "O", "T", "L", "S")
    assert ps.get("I").cell_count() == 3
    assert ps.get("L").cell_count() == 4
    assert ps.color_of("O") == (255, 255, 0)
    assert ps.kind_idx("T") == 2
    assert "S" in ps and "Z" not in ps


def test_bbox_covers_offsets() -> None:
    ps = PieceSet.default()
    assert ps.get("S").bbox() == ((0, 0, 0), (1, 1, 1))


def test_unknown_kind_raises_key_error() -> None:
    with pytest.raises(KeyError):
        PieceSet.default().get("Z")


@pytest.mark.parametrize(
    "blocks,msg",
    [
        ([], "non-empty"),
        ([[0, 0, 0], [0, 0, 0]], "duplicate"),
        ([[0, 0]], "3-item"),
        ([[0, True, 0]], "ints"),
    ],
)
def test_invalid_blocks_are_rejected(blocks, msg: str) -> None:
    with pytest.raises(ValueError, match=msg):
        PieceSet.from_mapping({"pieces": {"X": {"blocks": blocks}}})


def test_yaml_without_pieces_is_rejected(tmp_path: Path) -> None:
    p = tmp_path / "bad.yaml"
    p.write_text("shapes: {}\n", encoding="utf-8")
    with pytest.raises(ValueError, match="pieces"):
        PieceSet.from_yaml(p)


def test_sequence_rule_cycles_and_validates_kinds() -> None:
    rng = np.random.default_rng(0)
    rule = SequencePieceRule(sequence=("O", "I"))
    rule.reset(rng=rng, kinds=("I", "O"))
    assert [rule.next_piece(locked_kind=None) for _ in range(5)] == ["O", "I", "O", "I", "O"]

    with pytest.raises(KeyError):
        SequencePieceRule(sequence=("Q",)).reset(rng=rng, kinds=("I",))


def test_uniform_rule_is_reproducible_for_a_seed() -> None:
    kinds = PieceSet.default().kinds()
    a, b = UniformPieceRule(), UniformPieceRule()
    a.reset(rng=np.random.default_rng(11), kinds=kinds)
    b.reset(rng=np.random.default_rng(11), kinds=kinds)

    seq_a = [a.next_piece(locked_kind=None) for _ in range(20)]
    seq_b = [b.next_piece(locked_kind=None) for _ in range(20)]
    assert seq_a == seq_b
    assert set(seq_a) <= set(kinds)
