from __future__ import annotations

from decimal import Decimal
from fractions import Fraction

import numpy as np
import pytest

from allotment import numeric


@pytest.mark.parametrize("value,expected_type", [(5, int), (2.5, float), (Decimal("3"), Decimal), (Fraction(1, 3), Fraction), (np.uint32(7), np.uint32)])
def test_identity_is_zero_of_same_type(value: object, expected_type: type) -> None:
    zero = numeric.identity(value)
    assert zero == 0
    assert type(zero) is expected_type


def test_integral_detection_includes_numpy() -> None:
    assert numeric.is_integral(3, np.int64(4), np.uint8(1))
    assert not numeric.is_integral(3, 4.0)
    assert not numeric.is_integral(Fraction(1, 2))


def test_split_integral_truncates_with_remainder() -> None:
    assert numeric.split(14, 3) == (4, 2)


def test_split_non_integral_leaves_nothing_behind() -> None:
    q, r = numeric.split(Fraction(14), 3)
    assert q == Fraction(14, 3)
    assert r == 0
    q, r = numeric.split(14.0, 4)
    assert q == 3.5
    assert r == 0.0


def test_split_by_zero_raises() -> None:
    with pytest.raises(ZeroDivisionError):
        numeric.split(1, 0)


def test_share() -> None:
    assert numeric.share(10000, 3) == 3333
    assert numeric.share(10000.0, 4) == 2500.0
    assert numeric.share(Decimal("10"), 4) == Decimal("2.5")
