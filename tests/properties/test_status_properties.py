from functools import reduce

from hypothesis import given, strategies as st

from tandem.supervisor import (
    SPAWN_FAILED_STATUS,
    Exited,
    Outcome,
    Signaled,
    SpawnFailed,
    fold_status,
)

outcomes = st.one_of(
    st.builds(Exited, st.integers(min_value=0, max_value=255)),
    st.builds(Signaled, st.sampled_from(["SIGTERM", "SIGKILL", "SIGINT"])),
    st.builds(SpawnFailed, st.text(max_size=20)),
)


def _expected(items: list[Outcome]) -> int:
    codes = [o.code for o in items if isinstance(o, Exited)]
    codes.extend(SPAWN_FAILED_STATUS for o in items if isinstance(o, SpawnFailed))
    return max(codes, default=0)


@given(items=st.lists(outcomes, max_size=30))
def test_status_is_maximum_of_exit_codes(items: list[Outcome]) -> None:
    assert reduce(fold_status, items, 0) == _expected(items)


@given(items=st.lists(outcomes, max_size=30), data=st.data())
def test_status_ignores_arrival_order(items: list[Outcome], data: st.DataObject) -> None:
    shuffled = data.draw(st.permutations(items))

    assert reduce(fold_status, shuffled, 0) == reduce(fold_status, items, 0)


@given(items=st.lists(outcomes, max_size=30))
def test_signaled_outcomes_never_change_status(items: list[Outcome]) -> None:
    without_signaled = [o for o in items if not isinstance(o, Signaled)]

    assert reduce(fold_status, items, 0) == reduce(fold_status, without_signaled, 0)
