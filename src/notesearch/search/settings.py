"""Declarative search index configuration."""

from typing import Any

import structlog

from notesearch.errors import (
    IndexConfigurationError,
    SearchEngineError,
    SearchEngineUnavailableError,
)
from notesearch.search.engine import SearchBackend

logger = structlog.get_logger()

# Order sets default field weighting for relevance
SEARCHABLE_ATTRIBUTES: list[str] = [
    "title",
    "description",
    "subject",
    "author_name",
    "tags",
]

FILTERABLE_ATTRIBUTES: list[str] = [
    "subject",
    "tags",
    "author_id",
    "is_public",
    "created_at",
]

SORTABLE_ATTRIBUTES: list[str] = [
    "created_at",
    "downloads",
    "rating_avg",
]

# Precedence: fewer typos always beats better proximity
RANKING_RULES: list[str] = [
    "words",
    "typo",
    "proximity",
    "attribute",
    "sort",
    "exactness",
]

TYPO_TOLERANCE: dict[str, Any] = {
    "enabled": True,
    "minWordSizeForTypos": {
        "oneTypo": 4,
        "twoTypos": 8,
    },
}

DEFAULT_MAX_TOTAL_HITS = 1000


def index_settings(max_total_hits: int = DEFAULT_MAX_TOTAL_HITS) -> list[tuple[str, Any]]:
    """Build the ordered list of setting groups to apply.

    Args:
        max_total_hits: Pagination cap for the index.

    Returns:
        (settings sub-route, value) pairs in application order.
    """
    return [
        ("searchable-attributes", SEARCHABLE_ATTRIBUTES),
        ("filterable-attributes", FILTERABLE_ATTRIBUTES),
        ("sortable-attributes", SORTABLE_ATTRIBUTES),
        ("ranking-rules", RANKING_RULES),
        ("typo-tolerance", TYPO_TOLERANCE),
        ("pagination", {"maxTotalHits": max_total_hits}),
    ]


class IndexConfigurator:
    """Applies the index schema. Safe to run on every deployment."""

    def __init__(
        self,
        backend: SearchBackend,
        max_total_hits: int = DEFAULT_MAX_TOTAL_HITS,
    ) -> None:
        """Initialize configurator.

        Args:
            backend: Search engine client.
            max_total_hits: Pagination cap for the index.
        """
        self._backend = backend
        self._max_total_hits = max_total_hits

    async def initialize(self) -> dict[str, int]:
        """Apply every setting group.

        Groups are independent: a rejected group is logged and the rest
        are still attempted. An unreachable engine aborts immediately.

        Returns:
            Engine task uid per setting group.

        Raises:
            IndexConfigurationError: If the engine is unreachable or any
                group was rejected.
        """
        task_uids: dict[str, int] = {}
        failed: list[str] = []

        for group, value in index_settings(self._max_total_hits):
            try:
                task_uids[group] = await self._backend.update_setting(group, value)
            except SearchEngineUnavailableError as e:
                logger.error("index_configuration_unreachable", group=group, error=str(e))
                raise IndexConfigurationError(
                    f"Search engine unreachable while applying {group}",
                    failed_groups=[group],
                ) from e
            except SearchEngineError as e:
                logger.error(
                    "index_setting_failed",
                    group=group,
                    status=e.status_code,
                    error=e.detail,
                )
                failed.append(group)
            else:
                logger.debug("index_setting_applied", group=group, task_uid=task_uids[group])

        if failed:
            raise IndexConfigurationError(
                f"Failed to apply index settings: {', '.join(failed)}",
                failed_groups=failed,
            )

        logger.info("index_configured", groups=len(task_uids))
        return task_uids
