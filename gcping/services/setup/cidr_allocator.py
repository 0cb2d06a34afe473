from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CidrAllocator:
    """Hands out candidate `10.<octet>.0.0/20` blocks for one region.

    Create a fresh allocator per region; the octet only ever moves forward.
    """

    next_octet: int = 22
    step: int = 2

    def next(self) -> str:
        if not 0 <= self.next_octet <= 255:
            raise ValueError(f"CIDR octet out of range: {self.next_octet}")
        cidr = f"10.{self.next_octet}.0.0/20"
        self.next_octet += self.step
        return cidr
