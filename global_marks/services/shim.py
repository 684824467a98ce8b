"""
Compatibility shim - mark-change tracking on hosts without a native notification.

Capability negotiation happens once at startup and yields one strategy:

- NativeEventStrategy: the host emits a structured "mark changed" event
- LegacyCommandStrategy: the host offers an older scripted hook for the same event
- InputShimStrategy: neither exists, so the mark keystroke is intercepted. The
  interceptor reads the mark character, performs the host's default mark-set and
  then reports the mark explicitly.

The interceptor is never installed over a user binding of the keystroke. When a
later negotiation finds a native subscription, the interceptor is removed (once).
"""

from __future__ import annotations

import logging
from typing import Literal

import attrs

from global_marks.exceptions import CapabilityUnavailableError, ShimInstallConflictError
from global_marks.protocols import HostProtocol, MarkChangedCallback, Notifier
from global_marks.types import normalize_mark

__all__ = [
    'CapabilityNegotiator',
    'CompatibilityShim',
    'InputShimStrategy',
    'LegacyCommandStrategy',
    'MarkChangeStrategy',
    'NativeEventStrategy',
]

logger = logging.getLogger(__name__)

# Exceptions a host probe may raise when the capability simply isn't there
PROBE_FAILURES = (CapabilityUnavailableError, NotImplementedError)


# ==============================================================================
# Strategies
# ==============================================================================


@attrs.define(frozen=True)
class NativeEventStrategy:
    kind: Literal['native-event'] = 'native-event'


@attrs.define(frozen=True)
class LegacyCommandStrategy:
    kind: Literal['legacy-command'] = 'legacy-command'


@attrs.define(frozen=True)
class InputShimStrategy:
    installed: bool
    kind: Literal['shim'] = 'shim'


MarkChangeStrategy = NativeEventStrategy | LegacyCommandStrategy | InputShimStrategy


# ==============================================================================
# Input interceptor
# ==============================================================================


class CompatibilityShim:
    """Intercepts the mark keystroke and reports marks the host would not."""

    def __init__(
        self,
        host: HostProtocol,
        on_mark_set: MarkChangedCallback,
        notifier: Notifier,
        key: str = 'm',
    ) -> None:
        self.host = host
        self.on_mark_set = on_mark_set
        self.notifier = notifier
        self.key = key
        self._installed = False
        self._conflict_reported = False

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self) -> None:
        """
        Bind the interceptor to the mark keystroke.

        Raises:
            ShimInstallConflictError: The user already bound the keystroke
        """
        if self._installed:
            return
        existing = self.host.key_binding(self.key)
        if existing is not None:
            raise ShimInstallConflictError(self.key, existing)
        self.host.bind_key(self.key, self._on_keystroke)
        self._installed = True
        logger.info(f"Installed mark interceptor on '{self.key}'")

    def uninstall(self) -> bool:
        """Remove the interceptor; returns False when it was not installed."""
        if not self._installed:
            return False
        self.host.unbind_key(self.key)
        self._installed = False
        logger.info(f"Removed mark interceptor from '{self.key}'")
        return True

    def report_conflict(self, error: ShimInstallConflictError) -> None:
        """Tell the user about the binding conflict, only the first time."""
        if self._conflict_reported:
            return
        self._conflict_reported = True
        logger.info(str(error))
        self.notifier.info(str(error))

    def _on_keystroke(self) -> None:
        char = self.host.read_char()
        if not char:
            return  # Cancelled (e.g. escape); the default would do nothing either
        self.host.execute_native_mark_set(char)
        if normalize_mark(char) is not None:
            self.on_mark_set(char)


# ==============================================================================
# Negotiation
# ==============================================================================


class CapabilityNegotiator:
    """Resolves, and on request re-resolves, how mark changes reach us."""

    def __init__(self, host: HostProtocol, shim: CompatibilityShim, on_mark_set: MarkChangedCallback) -> None:
        self.host = host
        self.shim = shim
        self.on_mark_set = on_mark_set
        self.strategy: MarkChangeStrategy | None = None

    def negotiate(self) -> MarkChangeStrategy:
        """
        Pick the best available strategy.

        A native or legacy subscription, once made, is kept; later calls return it
        without probing again. While on the shim, each call retries the native
        probes and drops the interceptor if one now succeeds.

        Returns:
            The resolved strategy
        """
        if isinstance(self.strategy, NativeEventStrategy | LegacyCommandStrategy):
            return self.strategy

        strategy: MarkChangeStrategy | None = None
        if self._probe('native mark event', 'subscribe_mark_changed'):
            strategy = NativeEventStrategy()
        elif self._probe('legacy mark hook', 'register_legacy_mark_hook'):
            strategy = LegacyCommandStrategy()

        if strategy is not None:
            self.shim.uninstall()
        else:
            try:
                self.shim.install()
            except ShimInstallConflictError as e:
                self.shim.report_conflict(e)
            strategy = InputShimStrategy(installed=self.shim.installed)

        if strategy != self.strategy:
            logger.info(f'Mark change strategy: {strategy.kind}')
        self.strategy = strategy
        return strategy

    def _probe(self, capability: str, method_name: str) -> bool:
        subscribe = getattr(self.host, method_name, None)
        if subscribe is None:
            logger.debug(f'{capability} unavailable: host has no {method_name}')
            return False
        try:
            subscribe(self.on_mark_set)
        except PROBE_FAILURES as e:
            logger.debug(f'{capability} unavailable: {e}')
            return False
        return True
