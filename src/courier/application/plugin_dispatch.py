"""Provider plugin registry for message actions.

Provider plugins claim message actions for one provider (e.g. Slack
threads, Discord stickers). The registry hands each action to the plugin
registered for its provider; a missing plugin, an unlisted action or a
``None`` return all mean "declined", which is not an error.

Plugins are registered programmatically or discovered from the
``courier.message_actions`` entry-point group:

    [project.entry-points."courier.message_actions"]
    slack = "courier_slack.actions:SlackMessageActions"
"""

from __future__ import annotations

from importlib.metadata import entry_points
from typing import Iterable

import structlog

from courier.core.domain.actions import MessageActionContext, PluginToolResult
from courier.core.interfaces.outbound import MessageActionPluginProtocol

logger = structlog.get_logger(__name__)

ENTRY_POINT_GROUP = "courier.message_actions"


class MessageActionPluginRegistry:
    """MessageActionDispatcherProtocol implementation keyed by provider."""

    def __init__(self, plugins: Iterable[MessageActionPluginProtocol] | None = None) -> None:
        self._plugins: dict[str, MessageActionPluginProtocol] = {}
        for plugin in plugins or ():
            self.register(plugin)

    def register(self, plugin: MessageActionPluginProtocol) -> None:
        """Register ``plugin`` for its provider, replacing any previous one."""
        provider = plugin.provider.strip().lower()
        if provider in self._plugins:
            logger.info("plugin_dispatch.plugin_replaced", provider=provider)
        self._plugins[provider] = plugin

    def get(self, provider: str) -> MessageActionPluginProtocol | None:
        return self._plugins.get(provider.strip().lower())

    def list_actions(self, provider: str) -> list[str]:
        """Return the actions the provider's plugin claims, sorted."""
        plugin = self.get(provider)
        return sorted(plugin.actions) if plugin else []

    @property
    def providers(self) -> list[str]:
        return sorted(self._plugins)

    async def dispatch(self, context: MessageActionContext) -> PluginToolResult | None:
        """Offer ``context`` to the provider's plugin.

        Returns:
            The plugin's tool result, or None if the action was declined.
        """
        plugin = self.get(context.provider)
        if plugin is None or context.action not in plugin.actions:
            return None
        result = await plugin.handle_action(context)
        if result is None:
            logger.debug(
                "plugin_dispatch.declined",
                provider=context.provider,
                action=context.action,
            )
            return None
        return result

    def load_entry_points(self, group: str = ENTRY_POINT_GROUP) -> int:
        """Register plugins advertised by installed distributions.

        Each entry point must resolve to a plugin class (instantiated with
        no arguments) or a ready plugin instance. Broken entry points are
        logged and skipped.

        Returns:
            Number of plugins registered.
        """
        loaded = 0
        for entry_point in entry_points(group=group):
            try:
                target = entry_point.load()
                plugin = target() if isinstance(target, type) else target
            except Exception as exc:
                logger.error(
                    "plugin_dispatch.entry_point_failed",
                    entry_point=entry_point.name,
                    error=str(exc),
                )
                continue
            if not isinstance(plugin, MessageActionPluginProtocol):
                logger.warning(
                    "plugin_dispatch.invalid_plugin",
                    entry_point=entry_point.name,
                    plugin_type=type(plugin).__name__,
                )
                continue
            self.register(plugin)
            loaded += 1
        if loaded:
            logger.info("plugin_dispatch.entry_points_loaded", count=loaded, group=group)
        return loaded
