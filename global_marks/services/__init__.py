"""Service layer for mark tracking."""

from global_marks.services.codec import LocationCodec
from global_marks.services.dispatch import EventDispatcher
from global_marks.services.lifecycle import LifecycleSynchronizer
from global_marks.services.resolver import JumpResolver, ResolvedLocation, recover_column
from global_marks.services.shim import (
    CapabilityNegotiator,
    CompatibilityShim,
    InputShimStrategy,
    LegacyCommandStrategy,
    MarkChangeStrategy,
    NativeEventStrategy,
)
from global_marks.services.store import HandleAllocator, MarkStore

__all__ = [
    'CapabilityNegotiator',
    'CompatibilityShim',
    'EventDispatcher',
    'HandleAllocator',
    'InputShimStrategy',
    'JumpResolver',
    'LegacyCommandStrategy',
    'LifecycleSynchronizer',
    'LocationCodec',
    'MarkChangeStrategy',
    'MarkStore',
    'NativeEventStrategy',
    'ResolvedLocation',
    'recover_column',
]
