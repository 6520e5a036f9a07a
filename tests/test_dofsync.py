import pytest

from corrofem.dofsync import RankNumbering, number_all_steps, number_step, owner_of


def test_owner_of_picks_range():
    ranges = [0, 4, 8]
    assert owner_of(0, ranges) == 0
    assert owner_of(3, ranges) == 0
    assert owner_of(4, ranges) == 1
    assert owner_of(100, ranges) == 1


def test_owner_of_needs_a_range():
    with pytest.raises(ValueError):
        owner_of(1, [0])


def test_single_rank_numbering_order():
    res = number_step([[[3, 1, 2], [2]]], [0, 0], 0, [0, 10])
    (r,) = res
    assert r.numbering[0] == {1: 0, 2: 1, 3: 2}
    assert r.numbering[1] == {2: 3}
    assert r.local_range == (0, 4)
    assert r.total == 4
    assert r.ghost_dofs == []


def test_duplicates_are_removed():
    (r,) = number_step([[[1, 1, 2, 2]]], [0], 0, [0, 5])
    assert r.local_count == 2
    assert sorted(r.numbering[0]) == [1, 2]


def test_other_step_types_not_numbered():
    (r,) = number_step([[[0, 1], [0, 1]]], [0, 1], 0, [0, 5])
    assert r.numbering[1] == {}
    assert r.total == len(r.numbering[0])


def _two_rank():
    return number_step([[[0, 1, 2, 3]], [[3, 4, 5]]], [0], 0, [0, 3, 6])


def test_two_ranks_ranges_are_contiguous():
    r0, r1 = _two_rank()
    assert r0.local_range[0] == 0
    assert r0.local_range[1] == r1.local_range[0]
    assert r1.local_range[1] == r0.total == r1.total


def test_two_ranks_numbers_cover_range():
    r0, r1 = _two_rank()
    owned = set()
    for r in (r0, r1):
        start, stop = r.local_range
        mine = {v for v in r.numbering[0].values() if v not in r.ghost_dofs}
        assert mine == set(range(start, stop))
        owned |= mine
    assert owned == set(range(r0.total))


def test_ghost_matches_owner():
    r0, r1 = _two_rank()
    assert r0.dof(0, 3) == r1.dof(0, 3)
    assert r0.ghost_dofs == [r1.numbering[0][3]]
    assert r1.ghost_dofs == []


def test_request_forwarded_to_owner():
    r0, r1 = number_step([[[0, 4]], [[5]]], [0], 0, [0, 3, 6])
    assert 4 in r1.numbering[0]
    assert r0.numbering[0][4] == r1.numbering[0][4]
    assert r0.total == 3


def test_dof_lookup_missing_raises():
    (r,) = number_step([[[1]]], [0], 0, [0, 5])
    with pytest.raises(KeyError):
        r.dof(0, 2)


def test_all_steps_shape_and_consistency():
    reqs = [[[0, 1], [2]], [[3], [3, 4]]]
    out = number_all_steps(reqs, [0, 1], 2, [0, 3, 6])
    assert len(out) == 2
    assert all(len(step) == 2 for step in out)
    assert all(isinstance(r, RankNumbering) for step in out for r in step)
    assert out[0] == number_step(reqs, [0, 1], 0, [0, 3, 6])
    assert out[1] == number_step(reqs, [0, 1], 1, [0, 3, 6])


def test_wrong_rank_count_raises():
    with pytest.raises(ValueError):
        number_step([[[0]]], [0], 0, [0, 3, 6])


def test_wrong_dof_type_count_raises():
    with pytest.raises(ValueError):
        number_step([[[0], [1]]], [0], 0, [0, 3])


def test_negative_steps_raises():
    with pytest.raises(ValueError):
        number_all_steps([[[0]]], [0], -1, [0, 3])