import numpy as np
import pytest

from exoquant.nodes import ClusterNode, mean_pivot_order, summarise_node


def test_mean_pivot_small_example():
    keys = np.array([3.0, 1.0, 2.0])
    assert mean_pivot_order(keys).tolist() == [1, 2, 0]


def test_mean_pivot_sorts_distinct_keys():
    keys = np.random.default_rng(7).random(200)
    order = mean_pivot_order(keys)
    assert sorted(order.tolist()) == list(range(200))
    assert np.all(np.diff(keys[order]) >= 0)


def test_mean_pivot_equal_keys_reverse():
    keys = np.array([5.0, 5.0, 5.0])
    assert mean_pivot_order(keys).tolist() == [2, 1, 0]


def test_mean_pivot_deep_runs():
    # geometric keys nest the partitions deeply
    keys = np.array([2.0 ** -i for i in range(1000)])
    order = mean_pivot_order(keys)
    assert np.all(np.diff(keys[order]) >= 0)


def _node(ids):
    return ClusterNode(members=np.array(ids, dtype=np.int64))


def test_two_colour_split():
    colours = np.array([[0.0, 0.0, 0.0, 1.0], [1.0, 0.0, 0.0, 1.0]])
    counts = np.array([1, 1])
    node = _node([0, 1])
    summarise_node(node, colours, counts)
    assert node.num == 2
    assert node.avg == pytest.approx([0.5, 0.0, 0.0, 1.0])
    assert node.err == pytest.approx(0.5)
    assert node.vdif == pytest.approx(0.5)
    assert node.split == 1
    assert abs(node.dir[0]) == pytest.approx(1.0)


def test_split_prefers_largest_gap():
    colours = np.array(
        [[0.0, 0, 0, 1], [0.1, 0, 0, 1], [0.9, 0, 0, 1], [1.0, 0, 0, 1]]
    )
    counts = np.array([1, 1, 1, 1])
    node = _node([2, 0, 3, 1])
    summarise_node(node, colours, counts)
    left = set(node.members[: node.split].tolist())
    right = set(node.members[node.split :].tolist())
    assert {frozenset(left), frozenset(right)} == {frozenset({0, 1}), frozenset({2, 3})}
    assert 0 < node.vdif <= node.err


def test_single_member():
    colours = np.array([[0.2, 0.3, 0.4, 1.0]])
    node = _node([0])
    summarise_node(node, colours, np.array([6]))
    assert node.num == 6
    assert node.vdif == 0.0
    assert node.err == pytest.approx(0.0, abs=1e-12)
    assert not node.can_split


def test_identical_colours_have_no_gain():
    colours = np.array([[0.5, 0.5, 0.5, 1.0], [0.5, 0.5, 0.5, 1.0]])
    node = _node([0, 1])
    summarise_node(node, colours, np.array([2, 3]))
    assert node.vdif == 0.0
    assert node.split == 1
    assert np.all(node.dir == 0.0)


def test_empty_node_keeps_mean():
    node = ClusterNode(avg=np.array([0.1, 0.2, 0.3, 0.4]))
    summarise_node(node, np.zeros((0, 4)), np.zeros((0,), dtype=np.int64))
    assert node.num == 0
    assert node.avg == pytest.approx([0.1, 0.2, 0.3, 0.4])


def test_identical_colours_with_rounding_noise_do_not_split():
    # weighted sums of these leave a tiny non-zero variance
    colours = np.tile(np.array([[0.1, 0.2 * 1.2, 0.3 * 0.8, 1.0]]), (5, 1))
    counts = np.array([3, 7, 1, 11, 5])
    node = _node([0, 1, 2, 3, 4])
    summarise_node(node, colours, counts)
    assert node.num == 27
    assert node.vdif == 0.0
    assert node.split == 1
    assert not node.can_split


def _sequential_mean_order(keys):
    def part(idx):
        if len(idx) < 2:
            return idx
        total = 0.0
        for i in idx:
            total += keys[i]
        mean = total / len(idx)
        low = [i for i in idx if keys[i] < mean][::-1]
        high = [i for i in idx if not keys[i] < mean][::-1]
        if not low:
            return high
        if not high:
            return low
        return part(low) + part(high)

    return part(list(range(len(keys))))


def test_mean_pivot_uses_running_sum():
    # many tenths, so the pivot mean often lands on a key after rounding
    keys = np.random.default_rng(5).integers(0, 7, size=400) * 0.1
    expected = _sequential_mean_order(keys.tolist())
    assert mean_pivot_order(keys).tolist() == expected
