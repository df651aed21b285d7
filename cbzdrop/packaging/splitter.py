"""
Size-bounded splitting of an ordered page list.

Greedy contiguous fill: pages are never reordered to pack better, and a
page is never split. A page that is larger than the budget on its own is
placed alone in its own plan.

An asset that exactly fills the remaining budget joins the current group.
"""

import logging
from typing import List, Sequence

from ..archive.models import ImageAsset
from .models import PackagePlan, PartIndex

logger = logging.getLogger(__name__)

MEGABYTE = 1024 * 1024


def group_assets(
    assets: Sequence[ImageAsset], budget_bytes: int
) -> List[List[ImageAsset]]:
    """
    Partition ``assets`` into contiguous groups under ``budget_bytes``.

    Raises:
        ValueError: If budget_bytes is smaller than 1
    """
    if budget_bytes < 1:
        raise ValueError(f"Size budget must be at least 1 byte, got {budget_bytes}")

    groups: List[List[ImageAsset]] = []
    current: List[ImageAsset] = []
    running_total = 0

    for asset in assets:
        size = asset.size_bytes
        if current and running_total + size > budget_bytes:
            groups.append(current)
            current = []
            running_total = 0
        current.append(asset)
        running_total += size

    if current:
        groups.append(current)

    return groups


def split_assets(
    assets: Sequence[ImageAsset], budget_bytes: int
) -> List[PackagePlan]:
    """
    Split an ordered asset list into package plans.

    Args:
        assets: Images in page order
        budget_bytes: Maximum total image bytes per plan

    Returns:
        Plans in page order. A single plan has part_index None; otherwise
        every plan carries PartIndex(index, total), 1-indexed. Empty input
        yields an empty list.
    """
    groups = group_assets(assets, budget_bytes)

    if len(groups) <= 1:
        return [PackagePlan(assets=group) for group in groups]

    total = len(groups)
    logger.info(
        f"Splitting {len(assets)} page(s) into {total} parts "
        f"(budget {budget_bytes / MEGABYTE:.1f} MB)"
    )
    return [
        PackagePlan(assets=group, part_index=PartIndex(index=i, total=total))
        for i, group in enumerate(groups, start=1)
    ]
