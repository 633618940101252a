"""
Allocation engine exceptions.

Only genuine precondition violations raise. Table/terrain reuse and table
collisions are reported as Conflict entries on successful results.
"""


class AllocationError(Exception):
    """Base exception for allocation errors"""

    pass


class AllocationNotFoundError(AllocationError):
    """A referenced allocation, table, round or tournament does not exist"""

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} {entity_id} not found"
        super().__init__(message)


class AllocationValidationError(AllocationError):
    """Request is nonsensical for the current state (rejected before any write)"""

    pass


class CrossRoundSwapError(AllocationValidationError):
    """Swap requested between allocations of different rounds"""

    pass
