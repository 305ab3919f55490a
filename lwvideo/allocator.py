import logging
from typing import List

from blotter import BlotterFile

from .errors import NumericRangeError

logger = logging.getLogger(__name__)

# Addresses are stored as u32, cluster (circuit state) ids as i32.
MAX_ADDRESS = 0xFFFFFFFF
MAX_CLUSTER = 0x7FFFFFFF


class Allocator:
    """
    Hands out fresh component addresses and cluster ids.

    Both counters start at the highest value already present in the save
    and only ever count up, so nothing generated can collide with
    existing content.
    """

    def __init__(self, last_address: int = 0, last_cluster: int = 0):
        self.last_address = last_address
        self.last_cluster = last_cluster

    @classmethod
    def from_save(cls, save: BlotterFile) -> "Allocator":
        allocator = cls(save.max_address(), save.max_circuit_state_id())
        logger.debug(
            f"Allocator seeded at address {allocator.last_address}, cluster {allocator.last_cluster}"
        )
        return allocator

    def next_address(self) -> int:
        if self.last_address >= MAX_ADDRESS:
            raise NumericRangeError(f"Component address space exhausted (> {MAX_ADDRESS})")
        self.last_address += 1
        return self.last_address

    def next_cluster(self) -> int:
        if self.last_cluster >= MAX_CLUSTER:
            raise NumericRangeError(f"Cluster id space exhausted (> {MAX_CLUSTER})")
        self.last_cluster += 1
        return self.last_cluster

    def addresses(self, count: int) -> List[int]:
        return [self.next_address() for _ in range(count)]

    def clusters(self, count: int) -> List[int]:
        return [self.next_cluster() for _ in range(count)]

    @property
    def cluster_bound(self) -> int:
        """Every cluster id in use is strictly below this value."""
        return self.last_cluster + 1
