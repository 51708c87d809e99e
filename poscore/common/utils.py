"""
Common utility functions for the POS Core API.

Small helpers shared by the services, mostly for handling lists of ids
sent by clients.
"""

from typing import List, Sequence


def unique_ids(ids: Sequence[int]) -> List[int]:
    """
    Drop repeated ids, keeping first-seen order.

    Args:
        ids: Ids as sent by the client

    Returns:
        The ids without duplicates
    """
    return list(dict.fromkeys(ids))


def missing_ids(requested: Sequence[int], found: Sequence[int]) -> List[int]:
    """Return the ids of ``requested`` that are not in ``found``, in request order."""
    found_set = set(found)
    return [i for i in requested if i not in found_set]
