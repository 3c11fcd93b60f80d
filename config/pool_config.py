"""
Tip pool configuration - replaceable role catalog and pool layout

A restaurant with different roles or a different split can implement its
own PoolConfig and swap the global ``pool_config`` instance.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List

POOL1 = "pool1"
POOL2 = "pool2"


class PoolConfig(ABC):
    """Abstract pool configuration"""

    @abstractmethod
    def get_roles(self) -> List[Dict[str, str]]:
        """Return the role catalog as ``{"id", "name", "color"}`` dicts"""
        pass

    @abstractmethod
    def get_pool_roles(self) -> Dict[str, List[str]]:
        """Return pool name -> role ids that share that pool"""
        pass

    @abstractmethod
    def get_pool_shares(self) -> Dict[str, Decimal]:
        """Return pool name -> fraction of the total tip amount"""
        pass

    def pool_for_role(self, role_id: str) -> str:
        """Return the pool a role belongs to, or an empty string if none"""
        for pool, role_ids in self.get_pool_roles().items():
            if role_id in role_ids:
                return pool
        return ""

    def unmapped_roles(self) -> List[str]:
        """Return catalog role ids that are missing from every pool.

        Staff with such a role are left out of every distribution.
        """
        return [
            role["id"] for role in self.get_roles()
            if not self.pool_for_role(role["id"])
        ]


class AdegaPoolConfig(PoolConfig):
    """Two-pool layout: front of house shares 97%, support staff 3%"""

    def get_roles(self) -> List[Dict[str, str]]:
        return [
            {"id": "waiter", "name": "Waiter", "color": "#2196F3"},
            {"id": "busser", "name": "Busser", "color": "#4CAF50"},
            {"id": "gourmet-table", "name": "Gourmet Table", "color": "#FF9800"},
            {"id": "gaucho", "name": "Gaucho", "color": "#9C27B0"},
            {"id": "bar", "name": "Bar", "color": "#F44336"},
            {"id": "head-floor", "name": "Head Floor", "color": "#607D8B"},
        ]

    def get_pool_roles(self) -> Dict[str, List[str]]:
        return {
            POOL1: ["waiter", "gaucho", "bar", "head-floor"],
            POOL2: ["busser", "gourmet-table"],
        }

    def get_pool_shares(self) -> Dict[str, Decimal]:
        return {
            POOL1: Decimal("0.97"),
            POOL2: Decimal("0.03"),
        }


# Global pool configuration instance (can be replaced in app.py)
pool_config: PoolConfig = AdegaPoolConfig()
