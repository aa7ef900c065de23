"""Unit-by-unit bundle comparison."""

from __future__ import annotations

from buildvault.models.diff import DiffReport, DiffStatus, UnitDiff
from buildvault.models.units import ArtifactBundle


def diff_bundles(
    tagged: ArtifactBundle,
    local: ArtifactBundle,
    *,
    tag_label: str = "tag",
    local_label: str = "local",
) -> DiffReport:
    """Classify every qualified name in either bundle.

    ``added`` units exist only in *local*, ``removed`` ones only in
    *tagged*. A unit is modified when its interface or bytecode differs;
    metadata changes alone leave it unchanged. Unit order never matters
    since both sides are keyed by qualified name.
    """
    tagged_units = tagged.as_mapping()
    local_units = local.as_mapping()

    entries: list[UnitDiff] = []
    for name in sorted(tagged_units.keys() | local_units.keys()):
        before = tagged_units.get(name)
        after = local_units.get(name)
        if before is None:
            status = DiffStatus.ADDED
        elif after is None:
            status = DiffStatus.REMOVED
        elif before.content_digest != after.content_digest:
            status = DiffStatus.MODIFIED
        else:
            status = DiffStatus.UNCHANGED
        entries.append(
            UnitDiff(
                qualified_name=name,
                status=status,
                tag_digest=before.content_digest if before else None,
                local_digest=after.content_digest if after else None,
            )
        )

    return DiffReport(
        tag_label=tag_label,
        local_label=local_label,
        tag_fingerprint=tagged.fingerprint,
        local_fingerprint=local.fingerprint,
        entries=tuple(entries),
    )
