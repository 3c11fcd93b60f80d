"""Store layer - roster and calculation history on top of the engine"""
from business.store import StoreSnapshot, TipStore

__all__ = ["StoreSnapshot", "TipStore"]
