"""
Frame Topology Validation
=========================

Single responsibility: Prove that morph frames share the base object's
topology before they are merged into one flat model.
"""

from typing import List, Sequence

from cemconv.core.exceptions import TopologyMismatchError
from cemconv.core.model import Geometry, SplitObject


def same_array_counts(base: SplitObject, candidate: SplitObject) -> bool:
    return (
        len(base.vertices) == len(candidate.vertices)
        and len(base.normals) == len(candidate.normals)
        and len(base.tex_vertices) == len(candidate.tex_vertices)
    )


def same_geometry(base: List[Geometry], candidate: List[Geometry]) -> bool:
    """Pairwise shape comparison: same kind and same corners at every position."""
    if len(base) != len(candidate):
        return False

    for base_geometry, candidate_geometry in zip(base, candidate):
        if base_geometry.shapes != candidate_geometry.shapes:
            return False

    return True


def validate(base: SplitObject, candidates: Sequence[SplitObject]) -> None:
    """
    Check every candidate frame against the base object.

    Candidates are checked in linkage order. A candidate may only differ
    from the base in the values stored in its arrays, never in array
    lengths, face order, or the indices its faces reference.

    Args:
        base: Object that owns the shared index assignment
        candidates: Morph frames in declared order

    Raises:
        TopologyMismatchError: On the first failing candidate, carrying its
            zero-based position; later candidates are not checked
    """
    for index, candidate in enumerate(candidates):
        if not same_array_counts(base, candidate):
            raise TopologyMismatchError(index)

        if not same_geometry(base.geometry, candidate.geometry):
            raise TopologyMismatchError(index)
