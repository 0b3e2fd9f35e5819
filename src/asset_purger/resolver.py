"""Key Resolver - identifier to object keys and CDN paths."""

from typing import List

from shared.config import PurgeConfig

from asset_purger.models import PurgeTarget, TargetRole


def normalize_edge_path(store_key: str) -> str:
    """Forward slashes only, exactly one leading slash."""
    return "/" + store_key.replace("\\", "/").lstrip("/")


def resolve_targets(identifier: str, config: PurgeConfig) -> List[PurgeTarget]:
    """
    Map one identifier to its purge targets.

    Always yields the primary target first; the secondary target is added
    only when a secondary path is configured.
    """
    prefixes = [(TargetRole.PRIMARY, config.primary_path)]
    if config.secondary_enabled:
        prefixes.append((TargetRole.SECONDARY, config.secondary_path))

    targets = []
    for role, prefix in prefixes:
        store_key = f"{prefix}{identifier}{config.extension}"
        targets.append(
            PurgeTarget(
                identifier=identifier,
                role=role,
                store_key=store_key,
                edge_path=normalize_edge_path(store_key),
            )
        )
    return targets
