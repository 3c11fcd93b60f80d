"""Role catalog built from the pool configuration."""
from typing import Dict, List, Optional

from config.pool_config import PoolConfig, pool_config
from tipping.models import StaffRole


def role_catalog(config: Optional[PoolConfig] = None) -> List[StaffRole]:
    """Return the configured roles in catalog order."""
    config = config or pool_config
    return [
        StaffRole(id=role["id"], name=role["name"], color=role["color"])
        for role in config.get_roles()
    ]


def roles_by_id(config: Optional[PoolConfig] = None) -> Dict[str, StaffRole]:
    return {role.id: role for role in role_catalog(config)}


def get_role(role_id: str, config: Optional[PoolConfig] = None) -> Optional[StaffRole]:
    """Return the catalog role for an id, or None if the id is unknown."""
    return roles_by_id(config).get(role_id)


def resolve_role(role_id: str, config: Optional[PoolConfig] = None) -> StaffRole:
    """Return the catalog role, or a placeholder role for an unknown id.

    Stored rows may reference a role that was removed from the catalog;
    the placeholder keeps them loadable and the engine leaves them out of
    every pool.
    """
    role = get_role(role_id, config)
    if role is None:
        return StaffRole(id=role_id, name=role_id)
    return role
