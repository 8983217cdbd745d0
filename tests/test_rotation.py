import random
import threading

import pytest

from visit_note_generation.core.constants import (
    OT_POC_OPENERS,
    OT_SUMMARY_CLOSERS,
    PT_POC_OPENERS,
    PT_SUMMARY_CLOSERS,
    SUMMARY_INTRO_PREFIXES,
)
from visit_note_generation.core.enums import Discipline
from visit_note_generation.rotation import InMemoryRotationStore, RotationSelector, RotationStore
from tests.conftest import ZeroRandom


def test_pool_sizes_match_rotation_contract() -> None:
    assert len(SUMMARY_INTRO_PREFIXES) == 13
    assert len(PT_SUMMARY_CLOSERS) == 5
    assert len(OT_SUMMARY_CLOSERS) == 5
    assert len(PT_POC_OPENERS) == 8
    assert len(OT_POC_OPENERS) == 8


def test_first_pick_is_from_pool_and_later_picks_advance_by_one() -> None:
    pool = ["a", "b", "c", "d"]
    selector = RotationSelector(rng=random.Random(42))

    first = selector.pick("Patient #1::intro", pool)
    start = pool.index(first)
    following = [selector.pick("Patient #1::intro", pool) for _ in range(6)]

    assert following == [pool[(start + i) % len(pool)] for i in range(1, 7)]


def test_pool_of_one_always_returns_its_element() -> None:
    selector = RotationSelector()
    assert [selector.pick("k", ["only"]) for _ in range(5)] == ["only"] * 5


def test_empty_pool_raises_value_error() -> None:
    with pytest.raises(ValueError):
        RotationSelector().pick("k", [])


def test_subjects_rotate_independently() -> None:
    selector = RotationSelector(rng=ZeroRandom())
    pool = ["a", "b", "c"]

    assert selector.pick("Patient #1::intro", pool) == "a"
    assert selector.pick("Patient #1::intro", pool) == "b"
    assert selector.pick("Patient #2::intro", pool) == "a"
    assert selector.pick("Patient #1::intro", pool) == "c"


def test_state_is_keyed_by_pool_length() -> None:
    selector = RotationSelector(rng=ZeroRandom())

    assert selector.pick("k", ["a", "b"]) == "a"
    assert selector.pick("k", ["x", "y", "z"]) == "x"
    assert selector.pick("k", ["a", "b"]) == "b"
    assert selector.store.get(("k", 2)) == 1
    assert selector.store.get(("k", 3)) == 0


def test_pick_for_visit_uses_discipline_pools() -> None:
    selector = RotationSelector(rng=ZeroRandom())

    pt = selector.pick_for_visit("Patient #1", Discipline.PT)
    ot = selector.pick_for_visit("Patient #1", Discipline.OT)

    assert pt.intro_prefix == SUMMARY_INTRO_PREFIXES[0]
    assert pt.closing_sentence == PT_SUMMARY_CLOSERS[0]
    assert pt.poc_opener == PT_POC_OPENERS[0]
    # intro rotation is shared across disciplines for the same label
    assert ot.intro_prefix == SUMMARY_INTRO_PREFIXES[1]
    assert ot.closing_sentence == OT_SUMMARY_CLOSERS[0]
    assert ot.poc_opener == OT_POC_OPENERS[0]
    assert ot.expected_poc.startswith("OT POC: " + OT_POC_OPENERS[0] + " TherAct, ADL training")


def test_successive_visits_for_same_patient_differ() -> None:
    selector = RotationSelector(rng=random.Random(3))

    first = selector.pick_for_visit("Patient #9", Discipline.PT)
    second = selector.pick_for_visit("Patient #9", Discipline.PT)

    assert first.intro_prefix != second.intro_prefix
    assert first.closing_sentence != second.closing_sentence
    assert first.poc_opener != second.poc_opener


def test_in_memory_store_satisfies_protocol() -> None:
    assert isinstance(InMemoryRotationStore(), RotationStore)


def test_concurrent_picks_never_lose_updates() -> None:
    store = InMemoryRotationStore()
    selector = RotationSelector(store=store, rng=ZeroRandom())
    pool = list(range(1000))
    threads_count, picks_per_thread = 8, 50
    results = []
    results_lock = threading.Lock()

    def worker() -> None:
        picked = [selector.pick("Patient #1::intro", pool) for _ in range(picks_per_thread)]
        with results_lock:
            results.extend(picked)

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    total = threads_count * picks_per_thread
    assert sorted(results) == list(range(total))
    assert store.get(("Patient #1::intro", len(pool))) == total - 1


def test_store_clear_forgets_state() -> None:
    store = InMemoryRotationStore()
    selector = RotationSelector(store=store, rng=ZeroRandom())
    selector.pick("k", ["a", "b"])
    selector.pick("k", ["a", "b"])

    store.clear()

    assert len(store) == 0
    assert selector.pick("k", ["a", "b"]) == "a"
