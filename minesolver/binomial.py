"""Exact and approximate binomial coefficients over Python integers."""

import logging
import math
from typing import Iterator, List, Optional

logger = logging.getLogger(__name__)

_LOG10_E = math.log10(math.e)


class PrimeSieve:
    """Sieve of Eratosthenes over ``[0, n]``."""

    def __init__(self, n: int) -> None:
        """
        Build the sieve.

        Args:
            n: Largest value the sieve answers for; values below 2 are raised to 2.
        """
        self.max: int = max(n, 2)

        composite = bytearray(self.max + 1)
        composite[0] = composite[1] = 1

        i = 2
        while i * i <= self.max:
            if not composite[i]:
                composite[i * i :: i] = b"\x01" * len(range(i * i, self.max + 1, i))
            i += 1

        self._composite = composite

    def is_prime(self, n: int) -> bool:
        """
        Return True if n is prime.

        Raises:
            ValueError: If n is outside ``[2, max]``.
        """
        if n <= 1 or n > self.max:
            raise ValueError(f"Test value {n} is out of range 2 - {self.max}.")
        return not self._composite[n]

    def primes(self, start: int, stop: int) -> Iterator[int]:
        """
        Iterate over the primes in ``[start, stop]``.

        Raises:
            ValueError: If the range is empty or outside the sieve.
        """
        if start > stop:
            raise ValueError(f"start {start} must be <= stop {stop}.")
        if start <= 1 or start > self.max:
            raise ValueError(f"Start value {start} is out of range 2 - {self.max}.")
        if stop <= 1 or stop > self.max:
            raise ValueError(f"Stop value {stop} is out of range 2 - {self.max}.")

        composite = self._composite
        for candidate in range(start, stop + 1):
            if not composite[candidate]:
                yield candidate


class Binomial:
    """
    Binomial coefficient calculator with three tiers.

    1. A Pascal-triangle lookup table for ``n <= lookup_limit``.
    2. Exact values: a running product when the smaller side is below 125,
       otherwise a prime-power product whose exponents are the carries of
       ``k + (n - k)`` in base p (Kummer's theorem), for ``n <= max_exact``.
    3. A Stirling estimate with 7 significant digits for larger ``n``. This
       value is inexact and is only suitable for normalising off-edge counts.

    One instance is owned by each solver, so nothing is shared between games.
    """

    def __init__(self, max_exact: int = 500_000, lookup_limit: int = 200) -> None:
        """
        Initialize the calculator.

        Args:
            max_exact: Largest n computed exactly; above this the Stirling
                estimate is used.
            lookup_limit: Rows of Pascal's triangle to precompute (at least 10).

        Raises:
            ValueError: If max_exact is smaller than lookup_limit.
        """
        lookup_limit = max(lookup_limit, 10)
        if max_exact < lookup_limit:
            raise ValueError("max_exact must be >= lookup_limit.")

        self.max_exact: int = max_exact
        self.lookup_limit: int = lookup_limit
        self._sieve: Optional[PrimeSieve] = None

        # Only the left half of each row is stored, the rest is symmetric.
        table: List[List[int]] = [[1]]
        row = [1]
        for n in range(1, lookup_limit + 1):
            row = [1] + [row[i] + row[i + 1] for i in range(len(row) - 1)] + [1]
            table.append(row[: n // 2 + 1])
        self._lookup: List[List[int]] = table

    def choose(self, n: int, k: int) -> int:
        """
        Return the number of ways to choose k items from n.

        Args:
            n: Population size, must be >= 0.
            k: Selection size, must satisfy ``0 <= k <= n``.

        Returns:
            C(n, k) as an int; approximate (7 significant digits) when
            ``n > max_exact`` and the smaller side is at least 125.

        Raises:
            ValueError: If the arguments are out of range.
        """
        if n < 0:
            raise ValueError(f"Binomial: 0 <= n required, but n was {n}.")
        if k < 0 or k > n:
            raise ValueError(
                f"Binomial: 0 <= k <= n required, but n was {n} and k was {k}."
            )

        k = min(k, n - k)

        if n <= self.lookup_limit:
            return self._lookup[n][k]
        if k < 125:
            return self._product(k, n)
        if n <= self.max_exact:
            return self._kummer(k, n)
        return self._approximate(k, n)

    # -------------------------------------------------------------------------
    # Tiers
    # -------------------------------------------------------------------------

    @staticmethod
    def _product(k: int, n: int) -> int:
        top = 1
        bottom = 1
        for i in range(k):
            top *= n - i
            bottom *= i + 1
        return top // bottom

    def _kummer(self, k: int, n: int) -> int:
        if k == 0:
            return 1

        if self._sieve is None:
            logger.debug("Building prime sieve up to %d", self.max_exact)
            self._sieve = PrimeSieve(self.max_exact)

        nk = n - k
        n2 = n // 2
        root_n = math.isqrt(n)

        result = 1
        for prime in self._sieve.primes(2, n):
            if prime > nk:
                # appears once in n! and in neither k! nor (n-k)!
                result *= prime
                continue
            if prime > n2:
                continue
            if prime > root_n:
                if n % prime < k % prime:
                    result *= prime
                continue

            carry = 0
            power = 1
            big_n, big_k = n, k
            while big_n > 0:
                carry = 1 if (big_n % prime) < (big_k % prime + carry) else 0
                if carry:
                    power *= prime
                big_n //= prime
                big_k //= prime
            if power > 1:
                result *= power

        return result

    @staticmethod
    def _log10_factorial(n: int) -> float:
        if n < 2:
            return 0.0
        return (
            n * math.log10(n) - n * _LOG10_E + 0.5 * math.log10(2 * math.pi * n)
        )

    def _approximate(self, k: int, n: int) -> int:
        log_comb = (
            self._log10_factorial(n)
            - self._log10_factorial(k)
            - self._log10_factorial(n - k)
        )
        power = math.floor(log_comb)
        dp = min(6, power)
        digits = round(10 ** (log_comb - power + dp))
        logger.debug("Approximating C(%d, %d) as %de%d", n, k, digits, power - dp)
        return digits * 10 ** (power - dp)
