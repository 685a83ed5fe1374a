# numgen/factors.py
# Divisor counting by trial division.

from __future__ import annotations
import math


class DegenerateValueError(ValueError):
    """Factor count requested for a value where it is undefined (zero)."""


def factor_count(n) -> int:
    """
    Count the divisors of |n| by walking divisor pairs (i, |n|/i) up to sqrt(|n|).

    Odd values only need odd i. A square root divisor still counts as a pair,
    so perfect squares report one more than their true divisor count.
    """
    m = abs(int(n))
    if m == 0:
        raise DegenerateValueError("Cannot calculate factor count of 0.")
    if m == 1:
        return 1

    count = 2  # 1 and m
    limit = math.isqrt(m)
    if m % 2 == 0:
        start, step = 2, 1
    else:
        start, step = 3, 2
    for i in range(start, limit + 1, step):
        if m % i == 0:
            count += 2  # i and m // i
    return count
