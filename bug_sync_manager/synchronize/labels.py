"""Resolves label names into Linear label IDs."""

import structlog

from bug_sync_manager.exceptions import DataError, TransportError
from bug_sync_manager.linear.abc import LinearClientBase
from bug_sync_manager.synchronize.transform import get_label_color

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def resolve_label_ids(linear: LinearClientBase, team_id: str, label_names: list[str]) -> list[str]:
    """Look up or create each label in a team and return the IDs, in order.

    Labels are resolved one at a time. A label that cannot be resolved is logged
    and left out, so the issue is still created with the remaining labels.
    """
    label_ids: list[str] = []
    for name in label_names:
        try:
            label_id = await linear.get_or_create_label(team_id, name, get_label_color(name))
        except (TransportError, DataError) as exc:
            logger.warning("Could not resolve Linear label, skipping", team_id=team_id, label=name, error=str(exc))
            continue
        if label_id not in label_ids:
            label_ids.append(label_id)
    logger.debug("Resolved Linear labels", team_id=team_id, requested=len(label_names), resolved=len(label_ids))
    return label_ids
