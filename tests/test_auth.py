import re

import pytest

from freetime.core.auth import generate_user_id, generate_group_code, normalize_group_code
from freetime.core.errors import InvalidGroupCode


def test_user_id_is_deterministic():
    assert generate_user_id("a") == "user-97"
    assert generate_user_id("ab") == "user-3105"
    assert generate_user_id("Alice") == generate_user_id("Alice")
    assert generate_user_id("Alice") != generate_user_id("Bob")


def test_user_id_stays_within_32_bits():
    user_id = generate_user_id("a fairly long display name that overflows the hash")
    assert re.fullmatch(r"user-\d+", user_id)
    assert int(user_id.split("-")[1]) <= 2 ** 31


def test_group_code_shape():
    for _ in range(20):
        assert re.fullmatch(r"[A-Z]{4}", generate_group_code())


def test_normalize_group_code():
    assert normalize_group_code(" abcd ") == "ABCD"
    for bad in ["ABC", "ABCDE", "AB1D", ""]:
        with pytest.raises(InvalidGroupCode):
            normalize_group_code(bad)
